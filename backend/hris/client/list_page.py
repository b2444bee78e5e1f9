# backend/hris/client/list_page.py
"""
State behind an entity list page.

The controller owns the table parameters (search box, sort, page, page
size, filters), turns them into list query parameters, and keeps one
cached result per distinct parameter set. A response that arrives after
the parameters have moved on is kept in the cache but never shown.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from hris.auth import AccessChecker, AccessOperation, Subject
from hris.client.api import ApiRequestError, EntityApi
from hris.config import settings
from hris.query import OrderSpec
from hris.schemas.page import Page

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d-%m-%Y"


# ----------------------------------------------------------------------
# Columns
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Column:
    id: str
    header: str
    render: Callable[[Dict[str, Any]], str]
    # only shown when the caller may read this entity kind
    entity: Optional[str] = None


def text_cell(key: str) -> Callable[[Dict[str, Any]], str]:
    def render(record: Dict[str, Any]) -> str:
        value = record.get(key)
        return "" if value is None else str(value)
    return render


def date_cell(key: str) -> Callable[[Dict[str, Any]], str]:
    def render(record: Dict[str, Any]) -> str:
        value = record.get(key)
        if not value:
            return ""
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return value
        if isinstance(value, (date, datetime)):
            return value.strftime(DATE_FORMAT)
        return str(value)
    return render


def relation_cell(relation: str, key: str) -> Callable[[Dict[str, Any]], str]:
    def render(record: Dict[str, Any]) -> str:
        related = record.get(relation) or {}
        value = related.get(key)
        return "" if value is None else str(value)
    return render


# ----------------------------------------------------------------------
# Parameters
# ----------------------------------------------------------------------
@dataclass
class DataTableParams:
    page_number: int = 0
    page_size: int = 20
    search_term: str = ""
    order: List[OrderSpec] = field(default_factory=list)
    filters: Dict[str, Any] = field(default_factory=dict)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
            "searchTerm": self.search_term,
            "order": [o.model_dump() for o in self.order],
            "filters": self.filters,
        }


class ListPageController:
    def __init__(
        self,
        api: EntityApi,
        *,
        subject: Subject,
        checker: AccessChecker,
        columns: Sequence[Column],
        relations: Sequence[str] = (),
        search_term_keys: Sequence[str] = (),
        filters: Optional[Dict[str, Any]] = None,
        page_size: int = 20,
        order: Optional[Sequence[OrderSpec]] = None,
        debounce_ms: int = settings.debounce_ms,
        clock: Callable[[], float] = time.monotonic,
        cache_size: int = 50,
    ):
        self.api = api
        self.entity = api.entity
        self.subject = subject
        self.checker = checker
        self.columns = list(columns)
        self.relations = list(relations)
        self.search_term_keys = list(search_term_keys)
        self.debounce_ms = debounce_ms
        self._clock = clock

        self.params = DataTableParams(
            page_size=page_size,
            order=list(order or []),
            filters=dict(filters or {}),
        )
        self.search_input = ""
        self._pending_term: Optional[str] = None
        self._pending_since = 0.0

        self.data: Optional[Page] = None
        self.error: Optional[ApiRequestError] = None
        self.delete_error: Optional[ApiRequestError] = None
        self.is_loading = False
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, Page]" = OrderedDict()
        self._inflight: Dict[str, asyncio.Future] = {}
        # bumped by every confirmed delete; older requests are neither joined nor cached
        self._generation = 0

    # -------------------------------------------------------------- access
    def can(self, operation: AccessOperation, entity: Optional[str] = None) -> bool:
        return self.checker.has_access(self.subject, entity or self.entity, operation)

    @property
    def can_create(self) -> bool:
        return self.can(AccessOperation.CREATE)

    # -------------------------------------------------------------- input
    def on_search_term_change(self, term: str) -> None:
        self.search_input = term
        self._pending_term = term
        self._pending_since = self._clock()

    def _settle_search(self) -> None:
        if self._pending_term is None:
            return
        if (self._clock() - self._pending_since) * 1000 < self.debounce_ms:
            return
        if self._pending_term != self.params.search_term:
            self.params.search_term = self._pending_term
            self.params.page_number = 0
        self._pending_term = None

    def on_sort(self, column_id: str) -> None:
        """Ascending, then descending, then unsorted; sorting one column drops the others."""
        current = next((o for o in self.params.order if o.id == column_id), None)
        if current is None:
            self.params.order = [OrderSpec(id=column_id, desc=False)]
        elif not current.desc:
            self.params.order = [OrderSpec(id=column_id, desc=True)]
        else:
            self.params.order = []

    def on_page_change(self, page_number: int) -> None:
        self.params.page_number = max(0, page_number)

    def on_page_size_change(self, page_size: int) -> None:
        self.params.page_size = max(1, page_size)
        self.params.page_number = 0

    def on_filters_change(self, filters: Dict[str, Any]) -> None:
        self.params.filters = dict(filters)
        self.params.page_number = 0

    # -------------------------------------------------------------- query
    def request_params(self) -> Dict[str, Any]:
        self._settle_search()
        return self._query()

    def cache_key(self) -> str:
        self._settle_search()
        return self._key()

    def _query(self) -> Dict[str, Any]:
        p = self.params
        return {
            "relations": self.relations,
            "limit": p.page_size,
            "offset": p.page_number * p.page_size,
            "searchTerm": p.search_term,
            "order": [o.model_dump() for o in p.order],
            "searchTermKeys": self.search_term_keys,
            **p.filters,
        }

    def _key(self) -> str:
        return f"/{self.api.route}?params={json.dumps(self.params.snapshot(), sort_keys=True, default=str)}"

    async def load(self) -> Optional[Page]:
        """
        Fetch the page for the current parameters.

        Identical parameter sets share one cached result (or one request in
        flight). Returns None when the request failed or was superseded,
        either by newer parameters or by a delete.
        """
        self._settle_search()
        key = self._key()
        generation = self._generation
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            self.data, self.error, self.is_loading = cached, None, False
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self.api.list(self._query()))
            self._inflight[key] = task
        self.is_loading = True
        try:
            page = await task
        except ApiRequestError as e:
            if key == self._key() and generation == self._generation:
                self.error, self.is_loading = e, False
            return None
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

        if generation != self._generation:
            logger.debug("[%s] discarding response started before a delete: %s", self.entity, key)
            return None
        self._remember(key, page)
        if key != self._key():
            logger.debug("[%s] discarding superseded response for %s", self.entity, key)
            return None
        self.data, self.error, self.is_loading = page, None, False
        return page

    def _remember(self, key: str, page: Page) -> None:
        self._cache[key] = page
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    async def delete(self, record_id: str) -> bool:
        """Delete a row; the list only changes after the server confirmed the delete."""
        self.delete_error = None
        try:
            await self.api.delete(record_id)
        except ApiRequestError as e:
            self.delete_error = e
            return False
        self._generation += 1
        self._cache.clear()
        self._inflight.clear()
        await self.load()
        return True

    # -------------------------------------------------------------- output
    @property
    def page_count(self) -> int:
        if self.data is None:
            return 0
        return self.data.page_count(self.params.page_size)

    def visible_columns(self) -> List[Column]:
        return [c for c in self.columns if c.entity is None or self.can(AccessOperation.READ, c.entity)]

    def row_actions(self, record: Dict[str, Any]) -> List[str]:
        actions = []
        if self.can(AccessOperation.READ):
            actions.append("view")
        if self.can(AccessOperation.UPDATE):
            actions.append("edit")
        if self.can(AccessOperation.DELETE):
            actions.append("delete")
        return actions

    def rows(self) -> List[Dict[str, Any]]:
        if self.data is None:
            return []
        columns = self.visible_columns()
        return [
            {
                "id": record.get("id"),
                "cells": {c.id: c.render(record) for c in columns},
                "actions": self.row_actions(record),
            }
            for record in self.data.data
        ]


# ----------------------------------------------------------------------
# Pages
# ----------------------------------------------------------------------
def vacation_request_list_page(api: EntityApi, subject: Subject, checker: AccessChecker, **kwargs) -> ListPageController:
    return ListPageController(
        api,
        subject=subject,
        checker=checker,
        columns=[
            Column("start_date", "Start Date", date_cell("start_date")),
            Column("end_date", "End Date", date_cell("end_date")),
            Column("status", "Status", text_cell("status")),
            Column("employee", "Employee", relation_cell("employee", "first_name"), entity="employee"),
        ],
        relations=["employee"],
        search_term_keys=["status.contains"],
        order=[OrderSpec(id="created_at", desc=True)],
        **kwargs,
    )


def employee_list_page(api: EntityApi, subject: Subject, checker: AccessChecker, **kwargs) -> ListPageController:
    return ListPageController(
        api,
        subject=subject,
        checker=checker,
        columns=[
            Column("first_name", "First Name", text_cell("first_name")),
            Column("last_name", "Last Name", text_cell("last_name")),
            Column("vacation_days", "Vacation Days", text_cell("vacation_days")),
            Column("payroll", "Payroll", text_cell("payroll")),
            Column("user", "User", relation_cell("user", "email"), entity="user"),
        ],
        relations=["user", "_count"],
        search_term_keys=["first_name.contains", "last_name.contains"],
        order=[OrderSpec(id="created_at", desc=True)],
        **kwargs,
    )
