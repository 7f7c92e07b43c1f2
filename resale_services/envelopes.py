"""
Decoding of the backend's response envelopes.

The backend is inconsistent about wrapping: a record comes back bare or
as ``{data: record}``; a list comes back bare, as ``{data, pagination}``,
as ``{data, meta, links}`` or as a paginator nested under ``data``. The
overview endpoints double-encode their numbers as a JSON string under
``overview.data``. All of that is absorbed here so screens and engines
only see plain rows.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from resale_engines.listing import PageInfo, PageRequest
from resale_kernel.exceptions import MalformedResponseError


@dataclass(frozen=True)
class RawPage:
    """Undecoded rows of one page plus where the page sits."""

    rows: tuple[Mapping[str, Any], ...]
    page_info: PageInfo


def _rows(items: Any, path: str) -> tuple[Mapping[str, Any], ...]:
    if not isinstance(items, list):
        raise MalformedResponseError(path, f"expected a list, got {type(items).__name__}")
    for row in items:
        if not isinstance(row, Mapping):
            raise MalformedResponseError(path, f"expected objects, got {type(row).__name__}")
    return tuple(items)


def unwrap_record(body: Any, path: str) -> Mapping[str, Any]:
    """Return ``record`` from ``record`` or ``{data: record}``."""
    if isinstance(body, Mapping):
        inner = body.get("data")
        if isinstance(inner, Mapping):
            return inner
        return body
    raise MalformedResponseError(path, f"expected an object, got {type(body).__name__}")


def unwrap_list(body: Any, path: str, key: str = "data") -> tuple[Mapping[str, Any], ...]:
    """
    Rows of an unpaginated list: a bare list, ``{key: [...]}`` or
    ``{data: {data: [...]}}``.
    """
    if isinstance(body, list):
        return _rows(body, path)
    if isinstance(body, Mapping):
        inner = body.get(key)
        if isinstance(inner, Mapping) and "data" in inner:
            inner = inner["data"]
        if inner is None:
            return ()
        return _rows(inner, path)
    raise MalformedResponseError(path, f"expected a list, got {type(body).__name__}")


def unwrap_page(body: Any, path: str, per_page: int | None = None) -> RawPage:
    """
    Rows and page info of a paginated list response.

    A bare list is treated as a single page holding everything.
    """
    if isinstance(body, list):
        rows = _rows(body, path)
        return RawPage(rows=rows, page_info=PageInfo.compute(len(rows), PageRequest(1, max(len(rows), 1))))

    if not isinstance(body, Mapping):
        raise MalformedResponseError(path, f"expected a page, got {type(body).__name__}")

    envelope = body
    inner = body.get("data")
    if isinstance(inner, Mapping) and isinstance(inner.get("data"), list):
        # Paginator nested under "data"
        envelope = inner
    rows = _rows(envelope.get("data") or [], path)
    if not any(k in envelope for k in ("pagination", "meta")):
        # Laravel paginators put the numbers at the top level
        envelope = {"data": list(rows), "pagination": {
            k: envelope.get(k) for k in ("current_page", "from", "to", "total", "last_page", "per_page")
        }}
    return RawPage(rows=rows, page_info=PageInfo.from_envelope(envelope, per_page=per_page))


def decode_overview(body: Any, path: str) -> tuple[Mapping[str, Any], Mapping[str, Any] | None]:
    """
    Parse an overview response.

    Returns the aggregated numbers (decoded from the JSON string under
    ``overview.data``) and the subject record (``customer`` or
    ``supplier``) when present.
    """
    if not isinstance(body, Mapping):
        raise MalformedResponseError(path, "expected an object")
    overview = body.get("overview")
    raw = overview.get("data") if isinstance(overview, Mapping) else overview
    if isinstance(raw, str):
        try:
            numbers = json.loads(raw)
        except ValueError as exc:
            raise MalformedResponseError(path, f"overview data is not JSON: {exc}") from exc
    else:
        numbers = raw
    if not isinstance(numbers, Mapping):
        raise MalformedResponseError(path, "overview data is not an object")

    subject = body.get("customer") or body.get("supplier")
    return numbers, subject if isinstance(subject, Mapping) else None
