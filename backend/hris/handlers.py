# backend/hris/handlers.py
"""
Per-entity request handling.

Every operation runs the same steps: authorize, validate (writes only),
translate the query (reads only), run one storage operation, respond.
Authorization always happens before the session is touched, so a denied
caller never causes a read or a write.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from hris.auth import AccessChecker, Subject, method_to_operation
from hris.crud import EntityStore
from hris.errors import Forbidden, NotFound
from hris.query import parse_query_params, translate
from hris.schemas import Page, validate

logger = logging.getLogger(__name__)


class EntityHandler:
    def __init__(self, store: EntityStore):
        self.store = store
        self.entity = store.entity

    def authorize(
        self,
        subject: Subject,
        checker: AccessChecker,
        method: str,
        record_id: Optional[str] = None,
    ) -> None:
        """Map the HTTP verb to an operation and ask the checker; unknown verbs are 405."""
        operation = method_to_operation(method)
        if not checker.has_access(subject, self.entity, operation, record_id):
            logger.info(
                "[%s] denied %s for user %s (roles=%s)",
                self.entity, operation.value, subject.user_id, ",".join(subject.roles),
            )
            raise Forbidden(f"Not allowed to {operation.value} {self.entity}")

    def list(self, db: Session, subject: Subject, checker: AccessChecker, params: Mapping[str, Any]) -> Page:
        self.authorize(subject, checker, "GET")
        descriptor = translate(parse_query_params(params))
        return self.store.find_many(db, descriptor)

    def get(
        self,
        db: Session,
        subject: Subject,
        checker: AccessChecker,
        record_id: str,
        params: Mapping[str, Any],
    ) -> Dict[str, Any]:
        self.authorize(subject, checker, "GET", record_id)
        descriptor = translate(parse_query_params(params), extra={"id": record_id})
        row = self.store.find_first(db, descriptor)
        if row is None:
            raise NotFound(f"{self.entity} not found")
        return row

    def create(self, db: Session, subject: Subject, checker: AccessChecker, payload: Any) -> Dict[str, Any]:
        self.authorize(subject, checker, "POST")
        values = validate(self.entity, payload)
        row = self.store.create(db, values)
        logger.info("[%s] created %s", self.entity, row["id"])
        return row

    def update(
        self,
        db: Session,
        subject: Subject,
        checker: AccessChecker,
        record_id: str,
        payload: Any,
    ) -> Dict[str, Any]:
        self.authorize(subject, checker, "PUT", record_id)
        values = validate(self.entity, payload, partial=True)
        return self.store.update(db, record_id, values)

    def delete(self, db: Session, subject: Subject, checker: AccessChecker, record_id: str) -> Dict[str, Any]:
        self.authorize(subject, checker, "DELETE", record_id)
        row = self.store.delete(db, record_id)
        logger.info("[%s] deleted %s", self.entity, record_id)
        return row
