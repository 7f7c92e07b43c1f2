"""
Module: resale_engines.listing
Responsibility:
    Filter, sort and paginate an in-memory collection the way the list
    screens do, and read page information out of the backend's paginated
    envelopes.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Filters are a conjunction; a filter value of None or "all" is no
      filter.
    - Sorting is stable; records whose sort key is missing always come
      last, whichever the direction.
    - Page numbers are 1-based and clamp into [1, last_page]; an empty
      collection has one empty page with from == to == 0.

Failure modes:
    - InvalidPageError for a page size below one.

Usage:
    from resale_engines.listing import ListFilter, PageRequest, SortSpec, view

    result = view(bills, ListFilter(status="debt"), SortSpec("date", "desc"),
                  PageRequest(page=2, per_page=10))
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Mapping, Sequence, TypeVar

from resale_kernel.domain.entities import parse_day
from resale_kernel.domain.values import Money, coerce_decimal
from resale_kernel.exceptions import InvalidPageError
from resale_kernel.logging_config import get_logger
from resale_engines.tracer import traced_engine

logger = get_logger("engines.listing")

T = TypeVar("T")

ALL = "all"


def _get(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _plain(value: Any) -> Any:
    """Reduce enums and Money to comparable primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Money):
        return value.amount
    return value


def _unset(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, str) and value.lower() == ALL)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ListFilter:
    """
    Conjunction of the list-screen filters.

    Ids compare as strings. ``date_from`` / ``date_to`` are inclusive. A
    raw row's ISO date string is parsed first; a record without a
    parseable date never matches a date range.
    """

    status: str | Enum | None = None
    customer_id: str | int | None = None
    supplier_id: str | int | None = None
    account_type_id: str | int | None = None
    product_type: str | Enum | None = None
    rate: Decimal | str | None = None
    date_from: date | None = None
    date_to: date | None = None

    def _equal_filters(self) -> list[tuple[str, str]]:
        out = []
        for name in ("status", "customer_id", "supplier_id", "account_type_id", "product_type"):
            value = getattr(self, name)
            if not _unset(value):
                out.append((name, str(_plain(value))))
        return out

    def matches(self, record: Any) -> bool:
        for name, expected in self._equal_filters():
            actual = _get(record, name)
            if actual is None or str(_plain(actual)) != expected:
                return False

        if not _unset(self.rate):
            actual = _get(record, "rate")
            if actual is None or coerce_decimal(actual) != coerce_decimal(self.rate):
                return False

        if self.date_from is not None or self.date_to is not None:
            day = parse_day(_get(record, "date"))
            if day is None:
                return False
            if self.date_from is not None and day < self.date_from:
                return False
            if self.date_to is not None and day > self.date_to:
                return False
        return True

    @property
    def is_empty(self) -> bool:
        return (
            not self._equal_filters()
            and _unset(self.rate)
            and self.date_from is None
            and self.date_to is None
        )


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", SortDirection(self.direction))

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    per_page: int = 10

    def __post_init__(self) -> None:
        if self.per_page < 1:
            raise InvalidPageError(self.per_page)


@dataclass(frozen=True)
class PageInfo:
    """
    Position of one page in a collection.

    ``from_index`` / ``to_index`` are the 1-based inclusive display
    indices ("Showing 21 to 23 of 23"); both are 0 when empty.
    """

    page: int
    per_page: int
    from_index: int
    to_index: int
    total: int
    last_page: int

    @property
    def has_next(self) -> bool:
        return self.page < self.last_page

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @classmethod
    def compute(cls, total: int, request: PageRequest) -> PageInfo:
        last_page = max(1, math.ceil(total / request.per_page))
        page = min(max(1, request.page), last_page)
        if total == 0:
            return cls(page=1, per_page=request.per_page, from_index=0, to_index=0,
                       total=0, last_page=1)
        start = (page - 1) * request.per_page
        return cls(
            page=page,
            per_page=request.per_page,
            from_index=start + 1,
            to_index=min(start + request.per_page, total),
            total=total,
            last_page=last_page,
        )

    @classmethod
    def from_envelope(cls, envelope: Mapping[str, Any], per_page: int | None = None) -> PageInfo:
        """
        Page info from a ``{data, pagination}`` or ``{data, meta, links}``
        envelope.

        Missing numbers fall back to what the data list implies. Without
        ``current_page`` the page is derived from ``from`` and the page
        size.
        """
        data = envelope.get("data")
        count = len(data) if isinstance(data, list) else 0
        meta = envelope.get("pagination") or envelope.get("meta") or {}

        def number(*names: str, default: int = 0) -> int:
            for name in names:
                value = meta.get(name)
                if value is not None:
                    return int(coerce_decimal(value))
            return default

        from_index = number("from")
        to_index = number("to", default=from_index + count - 1 if from_index else count)
        total = number("total", default=to_index)
        size = per_page or number("per_page", default=max(count, 1)) or 1
        last_page = max(1, number("last_page", default=math.ceil(total / size) if total else 1))

        page = number("current_page")
        if not page:
            page = math.ceil(from_index / size) if from_index else 1

        return cls(
            page=min(page, last_page),
            per_page=size,
            from_index=from_index,
            to_index=to_index if from_index else 0,
            total=total,
            last_page=last_page,
        )


@dataclass(frozen=True)
class ListView(Generic[T]):
    items: tuple[T, ...]
    page_info: PageInfo


def sort_records(records: Sequence[T], sort: SortSpec) -> list[T]:
    """Stable sort on ``sort.field``; missing keys go last."""
    present = [r for r in records if _get(r, sort.field) is not None]
    missing = [r for r in records if _get(r, sort.field) is None]
    present.sort(key=lambda r: _plain(_get(r, sort.field)), reverse=sort.descending)
    return present + missing


@traced_engine("listing", "1.0", fingerprint_fields=("filters", "sort", "page"))
def view(
    records: Sequence[T],
    filters: ListFilter | None = None,
    sort: SortSpec | None = None,
    page: PageRequest | None = None,
) -> ListView[T]:
    """
    Filter, then sort, then cut out one page of ``records``.

    Out-of-range page numbers clamp to the nearest valid page.
    """
    selected = list(records)
    if filters is not None and not filters.is_empty:
        selected = [r for r in selected if filters.matches(r)]
    if sort is not None:
        selected = sort_records(selected, sort)

    request = page or PageRequest()
    info = PageInfo.compute(len(selected), request)
    if request.page != info.page and info.total:
        logger.debug("page_clamped", extra={
            "requested_page": request.page,
            "page": info.page,
            "last_page": info.last_page,
        })

    start = (info.page - 1) * info.per_page
    items = tuple(selected[start:start + info.per_page]) if info.total else ()
    return ListView(items=items, page_info=info)
