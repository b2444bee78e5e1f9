# backend/hris/client/api.py
"""HTTP SDK for the /api entity routes."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import httpx
from pydantic import BaseModel

from hris.auth import AccessOperation, AccessService, Subject
from hris.routes import route_to_entity
from hris.schemas.page import Page

logger = logging.getLogger(__name__)


class ApiRequestError(Exception):
    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.details = details


def encode_query(query: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    """Flatten a query dict into repeated ``key=value`` pairs; objects go as JSON."""
    pairs: List[Tuple[str, str]] = []
    for key, value in (query or {}).items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            if v is None:
                continue
            if isinstance(v, BaseModel):
                v = v.model_dump()
            if isinstance(v, dict):
                pairs.append((key, json.dumps(v, sort_keys=True)))
            elif isinstance(v, bool):
                pairs.append((key, "true" if v else "false"))
            else:
                pairs.append((key, str(v)))
    return pairs


def _raise_for_status(resp: httpx.Response) -> None:
    if not resp.is_error:
        return
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or resp.reason_phrase or "Request failed"
    raise ApiRequestError(resp.status_code, message, body.get("details"))


class EntityApi:
    """CRUD calls for one ``/api/<route>`` collection."""

    def __init__(self, client: httpx.AsyncClient, route: str):
        self.client = client
        self.route = route
        self.entity = route_to_entity(route)

    async def _request(self, method: str, path: str = "", **kwargs) -> Any:
        try:
            resp = await self.client.request(method, f"/api/{self.route}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.error("[%s] %s %s failed: %s", self.entity, method, path or "/", e)
            raise ApiRequestError(0, f"{type(e).__name__}: {e}")
        _raise_for_status(resp)
        return resp.json()

    async def list(self, query: Optional[Mapping[str, Any]] = None) -> Page:
        return Page.model_validate(await self._request("GET", params=encode_query(query)))

    async def get(self, record_id: str, query: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", f"/{record_id}", params=encode_query(query))

    async def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", json=dict(payload))

    async def update(self, record_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/{record_id}", json=dict(payload))

    async def delete(self, record_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/{record_id}")


class AccessSnapshot:
    """Operations the server granted per entity kind, usable wherever an AccessChecker is."""

    def __init__(self, operations: Mapping[str, Iterable[str]]):
        self.operations = {entity: frozenset(ops) for entity, ops in operations.items()}

    def has_access(
        self,
        subject: Subject,
        entity: str,
        operation: AccessOperation,
        record_id: Optional[str] = None,
        service: AccessService = AccessService.PROJECT,
    ) -> bool:
        return operation.value in self.operations.get(entity, frozenset())


class ApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        subject: Optional[Subject] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        headers = {"Content-Type": "application/json"}
        if subject is not None:
            headers["X-User-Id"] = subject.user_id
            if subject.tenant_id:
                headers["X-Tenant-Id"] = subject.tenant_id
            if subject.roles:
                headers["X-Roles"] = ",".join(subject.roles)
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.client.headers.update(headers)

        self.employees = EntityApi(self.client, "employees")
        self.vacation_requests = EntityApi(self.client, "vacation-requests")
        self.companies = EntityApi(self.client, "companies")

    def entity(self, route: str) -> EntityApi:
        return EntityApi(self.client, route)

    async def fetch_access(self, routes: Iterable[str]) -> AccessSnapshot:
        operations: Dict[str, List[str]] = {}
        for route in routes:
            try:
                resp = await self.client.get(f"/api/access/{route}")
            except httpx.HTTPError as e:
                raise ApiRequestError(0, f"{type(e).__name__}: {e}")
            _raise_for_status(resp)
            body = resp.json()
            operations[body["entity"]] = body.get("operations", [])
        return AccessSnapshot(operations)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
