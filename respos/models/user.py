from sqlalchemy import Boolean, Column, DateTime, Index, String, func, text

from respos.core.database import Base, WideInteger


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # e-mail is unique among live users only
        Index(
            "uq_users_emailid_active",
            "emailid",
            unique=True,
            postgresql_where=text("isdeleted = false"),
            sqlite_where=text("isdeleted = 0"),
        ),
    )

    uid = Column(WideInteger, primary_key=True, autoincrement=True)

    fullname = Column(String(200), nullable=True)
    firstname = Column(String(100), nullable=True)
    lastname = Column(String(100), nullable=True)
    emailid = Column(String(255), nullable=True)
    mobno = Column(String(30), nullable=True, index=True)
    employee_id = Column(String(50), nullable=True)
    usercode = Column(String(50), nullable=True)
    image = Column(String(500), nullable=True)

    password = Column(String(255), nullable=True)
    canlogin = Column(Boolean, nullable=False, default=True)

    profilestatus = Column(WideInteger, nullable=True)
    accountstatus = Column(WideInteger, nullable=True)
    isapproved = Column(Boolean, nullable=False, default=False)
    isadmin = Column(Boolean, nullable=False, default=False)
    marketsegement = Column(WideInteger, nullable=True)
    languageid = Column(WideInteger, nullable=True)
    currencyid = Column(WideInteger, nullable=True)

    isdeleted = Column(Boolean, nullable=False, default=False)
    createdby = Column(WideInteger, nullable=True)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    modifiedby = Column(WideInteger, nullable=True)
    modifieddate = Column(DateTime(timezone=True), nullable=True)
    deletedby = Column(WideInteger, nullable=True)
    deleteddate = Column(DateTime(timezone=True), nullable=True)
