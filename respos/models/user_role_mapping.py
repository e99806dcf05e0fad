from sqlalchemy import Boolean, Column, DateTime, ForeignKey, func

from respos.core.database import Base, WideInteger


class UserRoleMapping(Base):
    __tablename__ = "user_role_mappings"

    urmid = Column(WideInteger, primary_key=True, autoincrement=True)
    uid = Column(WideInteger, ForeignKey("users.uid"), nullable=False, index=True)
    uoid = Column(WideInteger, ForeignKey("organizations.uoid"), nullable=True, index=True)
    roleid = Column(WideInteger, nullable=True, index=True)
    roletypeid = Column(WideInteger, nullable=True)

    isdeleted = Column(Boolean, nullable=False, default=False)
    createdby = Column(WideInteger, nullable=True)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    modifiedby = Column(WideInteger, nullable=True)
    modifieddate = Column(DateTime(timezone=True), nullable=True)
