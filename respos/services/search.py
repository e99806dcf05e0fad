from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Collection, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import and_, or_, true
from sqlalchemy.orm import Query
from sqlalchemy.sql.elements import ColumnElement

from respos.core.config import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_code(value: Any) -> Optional[int]:
    """Integer value of a loose filter input, or None when it is not one."""
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class PredicateSet:
    """Collects independent predicates from optional inputs and ANDs them.

    Blank inputs add nothing. Values are always bound as parameters.
    """

    def __init__(self, *base: ColumnElement) -> None:
        self._predicates: List[ColumnElement] = list(base)

    def __len__(self) -> int:
        return len(self._predicates)

    def add(self, predicate: ColumnElement) -> "PredicateSet":
        self._predicates.append(predicate)
        return self

    def contains(self, column, value: Any) -> "PredicateSet":
        if not _is_blank(value):
            self.add(column.icontains(str(value).strip(), autoescape=True))
        return self

    def startswith(self, column, value: Any) -> "PredicateSet":
        if not _is_blank(value):
            self.add(column.startswith(str(value).strip(), autoescape=True))
        return self

    def any_contains(self, columns: Sequence, value: Any) -> "PredicateSet":
        if not _is_blank(value):
            term = str(value).strip()
            self.add(or_(*[column.icontains(term, autoescape=True) for column in columns]))
        return self

    def equals(self, column, value: Any) -> "PredicateSet":
        code = parse_code(value)
        if code is not None:
            self.add(column == code)
        return self

    def not_equals(self, column, value: Any) -> "PredicateSet":
        code = parse_code(value)
        if code is not None:
            self.add(column != code)
        return self

    def one_of(self, column, value: Any, allowed: Collection[int]) -> "PredicateSet":
        # values outside the whitelist are ignored, not rejected
        code = parse_code(value)
        if code is None:
            return self
        if code not in allowed:
            logger.info("ignoring filter value outside whitelist column=%s value=%s", column, code)
            return self
        self.add(column == code)
        return self

    def clause(self) -> ColumnElement:
        if not self._predicates:
            return true()
        return and_(*self._predicates)


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def of(cls, page: Any = None, size: Any = None, *, max_size: Optional[int] = None) -> "PageRequest":
        resolved_page = parse_code(page) or 1
        resolved_size = parse_code(size) or DEFAULT_PAGE_SIZE
        resolved_page = max(1, resolved_page)
        resolved_size = max(1, resolved_size)
        if max_size is not None:
            resolved_size = min(max_size, resolved_size)
        return cls(page=resolved_page, size=resolved_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    request: PageRequest = field(default_factory=PageRequest)

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.request.size)


def paginate(
    query: Query,
    request: PageRequest,
    order_by: Sequence[Any],
    transform: Optional[Callable[[Any], T]] = None,
) -> Page:
    """Count the full match set, then fetch one ordered slice of it.

    A page past the end yields no items but still reports the total.
    """
    total = query.order_by(None).count()
    rows = query.order_by(*order_by).offset(request.offset).limit(request.size).all()
    items = [transform(row) for row in rows] if transform else list(rows)
    return Page(items=items, total=int(total), request=request)
