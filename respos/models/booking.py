import sqlalchemy as sa
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB

from respos.core.database import Base, WideInteger


class TableInformation(Base):
    __tablename__ = "table_information"

    table_id = Column(WideInteger, primary_key=True, autoincrement=True)
    uoid = Column(WideInteger, ForeignKey("organizations.uoid"), nullable=True, index=True)
    table_name = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=True)
    status = Column(String(30), nullable=True)


class TableBooking(Base):
    __tablename__ = "table_bookings"

    booking_id = Column(WideInteger, primary_key=True, autoincrement=True)
    # customer, optional for walk-ins
    uid = Column(WideInteger, ForeignKey("users.uid"), nullable=True)
    waiter_id = Column(WideInteger, ForeignKey("users.uid"), nullable=False, index=True)
    table_id = Column(WideInteger, ForeignKey("table_information.table_id"), nullable=True)
    merge_table_id = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True)
    booking_time = Column(DateTime(timezone=True), nullable=False)
    no_of_guests = Column(Integer, nullable=True)
    is_reservation = Column(Boolean, nullable=False, default=False)

    is_deleted = Column(Boolean, nullable=False, default=False)
    createddate = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
