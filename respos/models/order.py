from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, func

from respos.core.database import Base, WideInteger


class Order(Base):
    __tablename__ = "orders"

    orderid = Column(WideInteger, primary_key=True, autoincrement=True)
    orderno = Column(Integer, nullable=True)
    buyerid = Column(WideInteger, ForeignKey("users.uid"), nullable=False, index=True)
    orderdate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    orderstatus = Column(WideInteger, nullable=True)
    paymentstatus = Column(String(30), nullable=True)
    shippingstatus = Column(String(30), nullable=True)
    table_id = Column(WideInteger, nullable=True)
    serving_type = Column(WideInteger, nullable=True)

    # exact decimal amounts, never floats
    orderitemtotal = Column(Numeric(12, 2), nullable=False, default=0)
    ordertaxtotal = Column(Numeric(12, 2), nullable=False, default=0)
    orderdiscount = Column(Numeric(12, 2), nullable=False, default=0)
    ordertotal = Column(Numeric(12, 2), nullable=False, default=0)

    isdeleted = Column(Boolean, nullable=False, default=False)
