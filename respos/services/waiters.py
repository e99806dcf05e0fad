from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from respos.core.constants import WAITER_ROLE_ID
from respos.core.errors import NotFoundError
from respos.core.serialization import row_to_dict
from respos.models.booking import TableBooking, TableInformation
from respos.models.user import User
from respos.models.user_role_mapping import UserRoleMapping
from respos.services.search import parse_code
from respos.services.users import require_org

logger = logging.getLogger(__name__)

BUCKETS = ("upcoming", "today", "past")
TODAY_WINDOW = timedelta(hours=24)


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def bucket_booking(booking_time: datetime, now: datetime) -> str:
    """upcoming: after now. today: the rolling 24 hours up to now. past: older."""
    booking_time = _as_utc(booking_time)
    now = _as_utc(now)
    if booking_time > now:
        return "upcoming"
    if now - TODAY_WINDOW <= booking_time <= now:
        return "today"
    return "past"


def _merged_ids(raw: Any) -> List[int]:
    if not raw:
        return []
    values = raw if isinstance(raw, (list, tuple)) else [raw]
    ids = [parse_code(value) for value in values]
    return [value for value in ids if value is not None]


def _find_waiter(db: Session, waiter_id: int, org_id: int) -> Optional[User]:
    return (
        db.query(User)
        .join(UserRoleMapping, UserRoleMapping.uid == User.uid)
        .filter(
            User.uid == waiter_id,
            User.isdeleted.is_(False),
            UserRoleMapping.roleid == WAITER_ROLE_ID,
            UserRoleMapping.uoid == org_id,
            UserRoleMapping.isdeleted.is_(False),
        )
        .first()
    )


def _by_id(rows: Iterable, key: str) -> Dict[int, Any]:
    return {getattr(row, key): row for row in rows}


def waiter_bookings(
    db: Session,
    waiter_id: int,
    *,
    org_id: Optional[int],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    waiter = _find_waiter(db, waiter_id, require_org(org_id))
    if waiter is None:
        raise NotFoundError("Waiter not found")

    now = now or datetime.now(timezone.utc)
    bookings = (
        db.query(TableBooking)
        .filter(TableBooking.waiter_id == waiter.uid, TableBooking.is_deleted.is_(False))
        .order_by(TableBooking.booking_time.desc(), TableBooking.booking_id.desc())
        .all()
    )

    # one round trip per related table, joined in memory
    customer_ids = {booking.uid for booking in bookings if booking.uid is not None}
    table_ids = {booking.table_id for booking in bookings if booking.table_id is not None}
    for booking in bookings:
        table_ids.update(_merged_ids(booking.merge_table_id))

    customers = {}
    if customer_ids:
        customers = _by_id(
            db.query(User.uid, User.fullname, User.mobno).filter(User.uid.in_(customer_ids)).all(),
            "uid",
        )
    tables = {}
    if table_ids:
        tables = _by_id(
            db.query(TableInformation).filter(TableInformation.table_id.in_(table_ids)).all(),
            "table_id",
        )

    grouped: Dict[str, List[Dict[str, Any]]] = {bucket: [] for bucket in BUCKETS}
    processed = []
    for booking in bookings:
        customer = customers.get(booking.uid)
        table = tables.get(booking.table_id)
        status = bucket_booking(booking.booking_time, now)
        row = row_to_dict(booking)
        row.update(
            {
                "customer_name": customer.fullname if customer else None,
                "customer_contact": customer.mobno if customer else None,
                "table_name": table.table_name if table else None,
                "table_capacity": table.capacity if table else None,
                "table_status": table.status if table else None,
                "merged_tables": [
                    row_to_dict(tables[table_id])
                    for table_id in _merged_ids(booking.merge_table_id)
                    if table_id in tables
                ],
                "booking_status": status,
            }
        )
        grouped[status].append(row)
        processed.append(row)

    logger.info(
        "waiter bookings uid=%s total=%s upcoming=%s today=%s past=%s",
        waiter.uid,
        len(processed),
        len(grouped["upcoming"]),
        len(grouped["today"]),
        len(grouped["past"]),
    )
    return {
        "waiter": {
            "uid": waiter.uid,
            "fullname": waiter.fullname,
            "emailid": waiter.emailid,
            "mobno": waiter.mobno,
            "roleid": WAITER_ROLE_ID,
        },
        "total_bookings": len(processed),
        "grouped_bookings": grouped,
        "all_bookings": processed,
    }
