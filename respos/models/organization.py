from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, func, text

from respos.core.database import Base, WideInteger


class Organization(Base):
    __tablename__ = "organizations"
    __table_args__ = (
        Index(
            "uq_organizations_orgemail_active",
            "orgemail",
            unique=True,
            postgresql_where=text("isdeleted = false"),
            sqlite_where=text("isdeleted = 0"),
        ),
    )

    uoid = Column(WideInteger, primary_key=True, autoincrement=True)
    orgname = Column(String(200), nullable=False)
    orgemail = Column(String(255), nullable=True)
    orgmobile = Column(String(30), nullable=True)
    # owner; back-filled once the bootstrap user exists
    uid = Column(WideInteger, ForeignKey("users.uid"), nullable=True, index=True)

    isdeleted = Column(Boolean, nullable=False, default=False)
    createdby = Column(WideInteger, nullable=True)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    modifiedby = Column(WideInteger, nullable=True)
    modifieddate = Column(DateTime(timezone=True), nullable=True)
