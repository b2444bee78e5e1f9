"""Tests for the list page controller."""

import asyncio
from datetime import date

import httpx
import pytest

from hris.auth import Subject
from hris.client import ApiClient, ApiRequestError, ListPageController, vacation_request_list_page
from hris.client.api import encode_query
from hris.main import app
from hris.models import VacationRequest
from hris.query import OrderSpec
from hris.schemas import Page

from conftest import StubChecker

SUBJECT = Subject(user_id="user-1", tenant_id="tenant-1", roles=("Admin",))


class FakeApi:
    """Stands in for EntityApi; ``gated`` holds each list call until released."""

    route = "vacation-requests"
    entity = "vacation_request"

    def __init__(self, gated=False):
        self.gated = gated
        self.calls = []
        self.deleted = []
        self.fail_delete = False
        self._events = {}

    def _event(self, offset):
        return self._events.setdefault(offset, asyncio.Event())

    def release(self, offset):
        self._event(offset).set()

    async def list(self, query):
        self.calls.append(query)
        # the server answers from the state it saw when the request arrived
        deleted = set(self.deleted)
        if self.gated:
            await self._event(query["offset"]).wait()
        row_id = f"row-{query['offset']}"
        if row_id in deleted:
            return Page(data=[], total_count=44)
        row = {"id": row_id, "start_date": "2024-01-01", "end_date": "2024-01-05",
               "status": "pending", "employee": {"first_name": "Ann"}}
        return Page(data=[row], total_count=45)

    async def delete(self, record_id):
        if self.fail_delete:
            raise ApiRequestError(409, "Conflict")
        self.deleted.append(record_id)
        return {"id": record_id}


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _controller(api=None, checker=None, **kwargs):
    return vacation_request_list_page(api or FakeApi(), SUBJECT, checker or StubChecker(), page_size=10, **kwargs)


def test_request_params_follow_table_state():
    ctl = _controller(filters={"employee_id": "E1"})
    ctl.on_page_change(2)
    params = ctl.request_params()
    assert params == {
        "relations": ["employee"],
        "limit": 10,
        "offset": 20,
        "searchTerm": "",
        "order": [{"id": "created_at", "desc": True}],
        "searchTermKeys": ["status.contains"],
        "employee_id": "E1",
    }


def test_search_is_debounced_and_resets_page():
    clock = Clock()
    ctl = _controller(clock=clock, debounce_ms=300)
    ctl.on_page_change(3)
    ctl.on_search_term_change("pe")
    clock.now = 0.1
    ctl.on_search_term_change("pend")
    clock.now = 0.2
    assert ctl.request_params()["searchTerm"] == ""
    assert ctl.search_input == "pend"
    clock.now = 0.5
    params = ctl.request_params()
    assert params["searchTerm"] == "pend"
    assert params["offset"] == 0


def test_sort_cycles_and_replaces_other_columns():
    ctl = _controller()
    ctl.on_sort("status")
    assert ctl.params.order == [OrderSpec(id="status", desc=False)]
    ctl.on_sort("status")
    assert ctl.params.order == [OrderSpec(id="status", desc=True)]
    ctl.on_sort("status")
    assert ctl.params.order == []


def test_page_size_change_resets_page():
    ctl = _controller()
    ctl.on_page_change(4)
    ctl.on_page_size_change(25)
    assert (ctl.params.page_number, ctl.params.page_size) == (0, 25)


def test_identical_parameters_reuse_cached_result():
    api = FakeApi()
    ctl = _controller(api)

    async def scenario():
        first = await ctl.load()
        second = await ctl.load()
        return first, second

    first, second = asyncio.run(scenario())
    assert first is second
    assert len(api.calls) == 1
    assert ctl.page_count == 5


def test_concurrent_loads_share_one_request():
    api = FakeApi(gated=True)
    ctl = _controller(api)

    async def scenario():
        t1 = asyncio.ensure_future(ctl.load())
        t2 = asyncio.ensure_future(ctl.load())
        await asyncio.sleep(0)
        api.release(0)
        return await t1, await t2

    p1, p2 = asyncio.run(scenario())
    assert p1 is p2
    assert len(api.calls) == 1


def test_superseded_response_is_discarded():
    api = FakeApi(gated=True)
    ctl = _controller(api)

    async def scenario():
        stale = asyncio.ensure_future(ctl.load())
        await asyncio.sleep(0)
        ctl.on_page_change(1)
        fresh = asyncio.ensure_future(ctl.load())
        await asyncio.sleep(0)
        api.release(10)
        fresh_page = await fresh
        api.release(0)
        stale_page = await stale
        return stale_page, fresh_page

    stale_page, fresh_page = asyncio.run(scenario())
    assert stale_page is None
    assert fresh_page.data[0]["id"] == "row-10"
    assert ctl.data is fresh_page


def test_failed_delete_keeps_rows():
    api = FakeApi()
    ctl = _controller(api)

    async def scenario():
        await ctl.load()
        before = ctl.data
        api.fail_delete = True
        ok = await ctl.delete("row-0")
        return before, ok

    before, ok = asyncio.run(scenario())
    assert ok is False
    assert ctl.data is before
    assert ctl.delete_error.status_code == 409
    assert len(api.calls) == 1


def test_successful_delete_refetches():
    api = FakeApi()
    ctl = _controller(api)

    async def scenario():
        await ctl.load()
        return await ctl.delete("row-0")

    assert asyncio.run(scenario()) is True
    assert api.deleted == ["row-0"]
    assert len(api.calls) == 2
    assert ctl.delete_error is None
    assert ctl.data.data == []


def test_delete_refetches_even_with_a_load_in_flight():
    api = FakeApi(gated=True)
    ctl = _controller(api)

    async def scenario():
        before = asyncio.ensure_future(ctl.load())
        await asyncio.sleep(0)
        deleting = asyncio.ensure_future(ctl.delete("row-0"))
        await asyncio.sleep(0)
        api.release(0)
        return await before, await deleting

    stale, deleted = asyncio.run(scenario())
    assert deleted is True
    assert stale is None
    assert len(api.calls) == 2
    assert ctl.data.data == []
    assert [r["id"] for r in ctl.rows()] == []


def test_cache_keeps_most_recently_used_pages():
    api = FakeApi()
    ctl = _controller(api, cache_size=2)

    async def visit(*pages):
        for page in pages:
            ctl.on_page_change(page)
            await ctl.load()

    asyncio.run(visit(0, 1, 0, 2))
    assert len(api.calls) == 3
    asyncio.run(visit(0))
    assert len(api.calls) == 3
    asyncio.run(visit(1))
    assert len(api.calls) == 4


def test_rows_respect_access():
    checker = StubChecker(denied={("employee", "read"), ("vacation_request", "delete")})
    ctl = _controller(checker=checker)
    asyncio.run(ctl.load())
    [row] = ctl.rows()
    assert row["cells"] == {"start_date": "01-01-2024", "end_date": "05-01-2024", "status": "pending"}
    assert row["actions"] == ["view", "edit"]
    assert ctl.can_create


def test_encode_query_repeats_lists_and_encodes_objects():
    pairs = encode_query({"relations": ["employee"], "order": [{"id": "a", "desc": True}], "limit": 5, "x": None})
    assert pairs == [("relations", "employee"), ("order", '{"desc": true, "id": "a"}'), ("limit", "5")]


def test_controller_against_api(client, session, employee):
    session.add_all([
        VacationRequest(start_date=date(2024, 1, d), end_date=date(2024, 1, d + 1),
                        status="pending" if d % 2 else "approved", employee_id="E1")
        for d in range(1, 8)
    ])
    session.commit()

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with ApiClient(
            subject=SUBJECT,
            client=httpx.AsyncClient(transport=transport, base_url="http://test"),
        ) as api:
            access = await api.fetch_access(["vacation-requests", "employees"])
            ctl = ListPageController(
                api.vacation_requests,
                subject=SUBJECT,
                checker=access,
                columns=[],
                relations=["employee"],
                search_term_keys=["status.contains"],
                page_size=3,
                debounce_ms=0,
            )
            ctl.on_search_term_change("pend")
            page = await ctl.load()
            missing = None
            try:
                await api.vacation_requests.get("missing")
            except ApiRequestError as e:
                missing = e
            return page, missing

    page, missing = asyncio.run(scenario())
    assert page.total_count == 4
    assert len(page.data) == 3
    assert page.data[0]["employee"]["first_name"] == "Ann"
    assert missing.status_code == 404
