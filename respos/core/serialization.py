from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy import inspect

# Largest integer a JSON number can carry without precision loss in JS clients.
MAX_SAFE_INTEGER = 2**53 - 1

WIDE_INTEGER_FIELDS = frozenset(
    {
        "uid",
        "uoid",
        "ulid",
        "uaid",
        "urmid",
        "urid",
        "uoamid",
        "roleid",
        "roleid_orgid",
        "roletypeid",
        "rightid",
        "userid",
        "createdby",
        "modifiedby",
        "deletedby",
        "orderid",
        "orderstatus",
        "serving_type",
        "buyerid",
        "booking_id",
        "waiter_id",
        "table_id",
        "merge_table_id",
        "state",
        "marketsegement",
        "languageid",
        "currencyid",
    }
)


def serialize_data(value: Any, key: str | None = None) -> Any:
    """Convert an outgoing payload into transport-safe JSON values.

    Identifier fields and out-of-range integers become decimal strings,
    decimals keep their exact digits as strings and datetimes become ISO-8601.
    """
    if value is None or isinstance(value, (str, bool)):
        return value
    if isinstance(value, int):
        if key in WIDE_INTEGER_FIELDS or abs(value) > MAX_SAFE_INTEGER:
            return str(value)
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, float):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): serialize_data(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        # elements inherit the parent key: merge_table_id holds table ids
        return [serialize_data(item, key) for item in value]
    return value


def envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": serialize_data(data)}


def row_to_dict(obj: Any, *, exclude: Iterable[str] = ()) -> dict[str, Any]:
    """Column values of an ORM instance keyed by column name."""
    skipped = set(exclude)
    mapper = inspect(obj).mapper
    return {
        attr.key: getattr(obj, attr.key)
        for attr in mapper.column_attrs
        if attr.key not in skipped
    }
