"""
Tests for list query state and stale-response rejection
(resale_services/list_controller.py).
"""

from resale_engines.listing import PageInfo, PageRequest, SortDirection
from resale_services.gateway import Page
from resale_services.list_controller import ListController
from tests.builders import logged_in_session, make_user


def _page(*items, page=1, total=None, per_page=10):
    total = len(items) if total is None else total
    return Page(items=tuple(items), page_info=PageInfo.compute(total, PageRequest(page, per_page)))


class _Fetch:
    """Records each query and answers with a page of the query's page number."""

    def __init__(self, total=25):
        self.queries = []
        self.total = total

    def __call__(self, query):
        self.queries.append(query)
        return _page(f"row-{query.page.page}", page=query.page.page, total=self.total,
                     per_page=query.page.per_page)


class TestQueryState:

    def setup_method(self):
        self.session = logged_in_session()
        self.fetch = _Fetch()
        self.controller = ListController("contracts", self.fetch, self.session, per_page=10)

    def test_starts_empty_on_page_one(self):
        assert self.controller.items == ()
        assert self.controller.query.page == PageRequest(1, 10)

    def test_filters_return_to_first_page(self):
        self.controller.set_page(3)
        query = self.controller.set_filters(customer_id="7")
        assert query.page.page == 1
        assert query.filters.customer_id == "7"

    def test_filters_accumulate_until_cleared(self):
        self.controller.set_filters(customer_id="7")
        self.controller.set_filters(status="debt")
        assert self.controller.query.filters.customer_id == "7"
        assert self.controller.clear_filters().filters.status is None

    def test_sort_resets_page(self):
        self.controller.set_page(2)
        query = self.controller.set_sort("money", "desc")
        assert query.sort.direction is SortDirection.DESC
        assert query.page.page == 1

    def test_next_and_prev_stay_in_range(self):
        self.controller.refresh()
        assert self.controller.page_info.last_page == 3
        self.controller.next_page()
        self.controller.refresh()
        self.controller.next_page()
        self.controller.refresh()
        assert self.controller.next_page().page.page == 3
        self.controller.set_page(1)
        self.controller.refresh()
        assert self.controller.prev_page().page.page == 1

    def test_refresh_fetches_current_query(self):
        self.controller.set_filters(supplier_id="2")
        page = self.controller.refresh()
        assert self.fetch.queries[-1].filters.supplier_id == "2"
        assert page.items == ("row-1",)


class TestStaleResponses:

    def setup_method(self):
        self.session = logged_in_session()
        self.controller = ListController("bills", _Fetch(), self.session)

    def test_newer_ticket_supersedes_older(self):
        old = self.controller.issue()
        new = self.controller.issue()
        assert not self.controller.accept(old, _page("old"))
        assert self.controller.accept(new, _page("new"))
        assert self.controller.items == ("new",)

    def test_query_change_in_flight_discards(self, captured_logs):
        ticket = self.controller.issue()
        self.controller.set_filters(customer_id="9")
        assert not self.controller.accept(ticket, _page("stale"))
        assert self.controller.items == ()
        stale = [r for r in captured_logs() if r["message"] == "stale_response_discarded"]
        assert stale[-1]["screen"] == "bills"
        assert stale[-1]["ticket"] == ticket.number

    def test_session_switch_discards(self):
        ticket = self.controller.issue()
        self.session.populate("other-token", make_user(id="u2"))
        assert not self.controller.is_current(ticket)
        assert not self.controller.accept(ticket, _page("previous user"))

    def test_logout_discards(self):
        ticket = self.controller.issue()
        self.session.clear()
        assert not self.controller.accept(ticket, _page("x"))

    def test_current_ticket_accepted(self):
        ticket = self.controller.issue()
        assert self.controller.is_current(ticket)
        assert self.controller.accept(ticket, _page("a", "b"))
        assert self.controller.page_info.total == 2
