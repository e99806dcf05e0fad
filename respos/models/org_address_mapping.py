from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, func

from respos.core.database import Base, WideInteger


class OrgAddressMapping(Base):
    __tablename__ = "org_address_mappings"

    uoamid = Column(WideInteger, primary_key=True, autoincrement=True)
    uaid = Column(WideInteger, ForeignKey("addresses.uaid"), nullable=False, index=True)
    uoid = Column(WideInteger, ForeignKey("organizations.uoid"), nullable=False, index=True)
    uid = Column(WideInteger, ForeignKey("users.uid"), nullable=True)
    isdefault = Column(Boolean, nullable=False, default=False)
    addrtype = Column(Integer, nullable=True)

    isdeleted = Column(Boolean, nullable=False, default=False)
    createdby = Column(WideInteger, nullable=True)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
