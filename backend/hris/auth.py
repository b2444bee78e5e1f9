# backend/hris/auth.py
"""
Capability checks.

Whether a caller may perform an operation on an entity kind is a yes/no
question asked through ``AccessChecker``. ``RolePolicy`` answers it from
the role grants in ``hris.config``; tests swap in stubs through FastAPI's
dependency overrides.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Tuple

from fastapi import Header

from hris.config import AppConfig, app_config
from hris.errors import MethodNotAllowed, Unauthorized

logger = logging.getLogger(__name__)


class AccessOperation(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class AccessService(str, Enum):
    PROJECT = "project"
    PLATFORM = "platform"


_METHOD_OPERATIONS = {
    "GET": AccessOperation.READ,
    "POST": AccessOperation.CREATE,
    "PUT": AccessOperation.UPDATE,
    "DELETE": AccessOperation.DELETE,
}


def method_to_operation(method: str) -> AccessOperation:
    try:
        return _METHOD_OPERATIONS[method.upper()]
    except KeyError:
        raise MethodNotAllowed(method.upper())


@dataclass(frozen=True)
class Subject:
    user_id: str
    tenant_id: Optional[str] = None
    roles: Tuple[str, ...] = field(default_factory=tuple)


class AccessChecker(Protocol):
    def has_access(
        self,
        subject: Subject,
        entity: str,
        operation: AccessOperation,
        record_id: Optional[str] = None,
        service: AccessService = AccessService.PROJECT,
    ) -> bool:
        ...


class RolePolicy:
    """
    Role based grants.

    Owner roles may do anything. Tenant roles need a tenant and are looked up
    in ``config.grants`` (entity kind, or ``"*"`` for every kind). Customer
    roles only ever read.
    """

    def __init__(self, config: AppConfig = app_config):
        self.config = config

    def operations_for(self, role: str, entity: str) -> Tuple[str, ...]:
        grants = self.config.grants.get(role, {})
        ops = grants.get(entity, grants.get("*", []))
        if role in self.config.customer_roles:
            ops = [op for op in ops if op == AccessOperation.READ.value]
        return tuple(ops)

    def has_access(
        self,
        subject: Subject,
        entity: str,
        operation: AccessOperation,
        record_id: Optional[str] = None,
        service: AccessService = AccessService.PROJECT,
    ) -> bool:
        if any(r in self.config.owner_roles for r in subject.roles):
            return True
        if service is AccessService.PLATFORM:
            return False
        for role in subject.roles:
            if role in self.config.tenant_roles and not subject.tenant_id:
                continue
            if operation.value in self.operations_for(role, entity):
                return True
        return False


_policy = RolePolicy()


# ----------------------------------------------------------------------
# FastAPI dependencies
# ----------------------------------------------------------------------
def get_access_checker() -> AccessChecker:
    return _policy


def get_subject(
    x_user_id: Optional[str] = Header(None),
    x_tenant_id: Optional[str] = Header(None),
    x_roles: Optional[str] = Header(None),
) -> Subject:
    """Caller identity as forwarded by the session gateway."""
    if not x_user_id:
        raise Unauthorized()
    roles = tuple(r.strip() for r in (x_roles or "").split(",") if r.strip())
    return Subject(user_id=x_user_id, tenant_id=x_tenant_id or None, roles=roles)


def allowed_operations(checker: AccessChecker, subject: Subject, entity: str) -> list[str]:
    return [op.value for op in AccessOperation if checker.has_access(subject, entity, op)]
