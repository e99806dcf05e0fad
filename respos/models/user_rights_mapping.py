from sqlalchemy import Boolean, Column, DateTime, ForeignKey, func

from respos.core.database import Base, WideInteger


class UserRightsMapping(Base):
    __tablename__ = "user_rights_mappings"

    urid = Column(WideInteger, primary_key=True, autoincrement=True)
    userid = Column(WideInteger, ForeignKey("users.uid"), nullable=False, index=True)
    rightid = Column(WideInteger, nullable=False)

    isdeleted = Column(Boolean, nullable=False, default=False)
    createdby = Column(WideInteger, nullable=True)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    modifiedby = Column(WideInteger, nullable=True)
