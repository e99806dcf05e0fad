from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from respos.core.database import Base, WideInteger


class UserLogin(Base):
    """Login account of a user: credentials live on ``users``, identity here."""

    __tablename__ = "user_logins"

    ulid = Column(WideInteger, primary_key=True, autoincrement=True)
    uid = Column(WideInteger, ForeignKey("users.uid"), nullable=False, unique=True)
    username = Column(String(255), nullable=False, index=True)

    # primary organization
    uoid = Column(WideInteger, ForeignKey("organizations.uoid"), nullable=True, index=True)
    roleid = Column(WideInteger, nullable=True)
    # organization of the role assignment (legacy field)
    roleid_orgid = Column(WideInteger, nullable=True, index=True)

    isdeleted = Column(Boolean, nullable=False, default=False)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    logintime = Column(DateTime(timezone=True), nullable=True)
    logouttime = Column(DateTime(timezone=True), nullable=True)
