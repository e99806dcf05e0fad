from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, func

from respos.core.database import Base, WideInteger


class Address(Base):
    __tablename__ = "addresses"

    uaid = Column(WideInteger, primary_key=True, autoincrement=True)
    uid = Column(WideInteger, ForeignKey("users.uid"), nullable=True, index=True)

    address1 = Column(String(255), nullable=False)
    address2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(WideInteger, nullable=True)
    country = Column(String(50), nullable=True)
    pincode = Column(String(20), nullable=True)
    latitude = Column(Numeric(10, 7), nullable=True)
    longitude = Column(Numeric(10, 7), nullable=True)

    isdeleted = Column(Boolean, nullable=False, default=False)
    createdby = Column(WideInteger, nullable=True)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
