"""
resale_services.list_controller -- Query state of one list screen.

Responsibility:
    Hold the current filters, sort and page of a list screen, fetch the
    matching page and keep it. Every fetch is tagged with a ``Ticket``;
    a response whose ticket is no longer current (the query changed, a
    newer fetch was issued, or the operator logged out/in) is discarded
    instead of overwriting newer state.

Architecture position:
    Services layer. The fetch function is injected (normally a
    ``ResaleGateway`` method), so the controller itself does no I/O.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from resale_engines.listing import ListFilter, PageInfo, PageRequest, SortDirection, SortSpec
from resale_kernel.domain.session import AuthSession
from resale_kernel.logging_config import get_logger
from resale_services.gateway import Page
from resale_services.notifications import log_stale_response

logger = get_logger("services.list_controller")

T = TypeVar("T")


@dataclass(frozen=True)
class ListQuery:
    filters: ListFilter = field(default_factory=ListFilter)
    sort: SortSpec | None = None
    page: PageRequest = field(default_factory=PageRequest)


@dataclass(frozen=True)
class Ticket:
    """Identifies the query state a request was issued for."""

    number: int
    query: ListQuery
    session_generation: int


class ListController(Generic[T]):
    """
    Filters / sort / page of one screen plus the last accepted page.

    Changing the filters or the sort returns to page 1.
    """

    def __init__(
        self,
        screen: str,
        fetch: Callable[[ListQuery], Page[T]],
        session: AuthSession,
        per_page: int = 10,
    ) -> None:
        self.screen = screen
        self._fetch = fetch
        self._session = session
        self._query = ListQuery(page=PageRequest(1, per_page))
        self._page: Page[T] = Page.empty(per_page)
        self._version = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Query state
    # ------------------------------------------------------------------

    @property
    def query(self) -> ListQuery:
        return self._query

    @property
    def page(self) -> Page[T]:
        return self._page

    @property
    def items(self) -> tuple[T, ...]:
        return self._page.items

    @property
    def page_info(self) -> PageInfo:
        return self._page.page_info

    def _change(self, query: ListQuery) -> ListQuery:
        with self._lock:
            self._query = query
            self._version += 1
        return query

    def set_filters(self, **changes: Any) -> ListQuery:
        filters = replace(self._query.filters, **changes)
        return self._change(replace(
            self._query, filters=filters,
            page=PageRequest(1, self._query.page.per_page),
        ))

    def clear_filters(self) -> ListQuery:
        return self._change(replace(
            self._query, filters=ListFilter(),
            page=PageRequest(1, self._query.page.per_page),
        ))

    def set_sort(self, field_name: str, direction: SortDirection | str = SortDirection.ASC) -> ListQuery:
        return self._change(replace(
            self._query, sort=SortSpec(field_name, direction),
            page=PageRequest(1, self._query.page.per_page),
        ))

    def set_page(self, page: int) -> ListQuery:
        return self._change(replace(self._query, page=PageRequest(page, self._query.page.per_page)))

    def next_page(self) -> ListQuery:
        return self.set_page(min(self.page_info.page + 1, self.page_info.last_page))

    def prev_page(self) -> ListQuery:
        return self.set_page(max(self.page_info.page - 1, 1))

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def issue(self) -> Ticket:
        """Tag a new request; any older ticket becomes stale."""
        with self._lock:
            self._version += 1
            return Ticket(self._version, self._query, self._session.generation)

    def is_current(self, ticket: Ticket) -> bool:
        return (
            ticket.number == self._version
            and ticket.query == self._query
            and ticket.session_generation == self._session.generation
        )

    def accept(self, ticket: Ticket, page: Page[T]) -> bool:
        """Store ``page`` if ``ticket`` is still current."""
        with self._lock:
            if not self.is_current(ticket):
                log_stale_response(screen=self.screen, ticket=ticket.number, current=self._version)
                return False
            self._page = page
        logger.debug("page_accepted", extra={
            "screen": self.screen,
            "ticket": ticket.number,
            "page": page.page_info.page,
            "total": page.page_info.total,
        })
        return True

    def refresh(self) -> Page[T]:
        """Fetch the current query and keep the result unless superseded."""
        ticket = self.issue()
        result = self._fetch(ticket.query)
        self.accept(ticket, result)
        return self._page
