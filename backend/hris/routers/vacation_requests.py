# backend/hris/routers/vacation_requests.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from hris.auth import AccessChecker, Subject, get_access_checker, get_subject
from hris.crud import EntityStore
from hris.db import get_db
from hris.handlers import EntityHandler
from hris.models.vacation_request import VacationRequest
from hris.routes import route_to_entity
from hris.schemas import Page

ROUTE = "vacation-requests"

router = APIRouter(prefix=f"/api/{ROUTE}", tags=[ROUTE])
handler = EntityHandler(EntityStore(VacationRequest, route_to_entity(ROUTE)))


@router.get("", response_model=Page)
def list_vacation_requests(
    request: Request,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """
    GET /api/vacation-requests
    GET /api/vacation-requests?relations=employee&searchTerm=pend&searchTermKeys=status.contains&limit=10&offset=0
    """
    return handler.list(db, subject, checker, request.query_params)


@router.post("")
def create_vacation_request(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """
    POST /api/vacation-requests
    Body: { "start_date": "YYYY-MM-DD", "end_date": "YYYY-MM-DD", "status": "pending", "employee_id": "..." }
    """
    return handler.create(db, subject, checker, payload)


@router.get("/{vacation_request_id}")
def get_vacation_request(
    vacation_request_id: str,
    request: Request,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    return handler.get(db, subject, checker, vacation_request_id, request.query_params)


@router.put("/{vacation_request_id}")
def update_vacation_request(
    vacation_request_id: str,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """Partial update: only the fields present in the body change."""
    return handler.update(db, subject, checker, vacation_request_id, payload)


@router.delete("/{vacation_request_id}")
def delete_vacation_request(
    vacation_request_id: str,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """Returns the deleted row as it was."""
    return handler.delete(db, subject, checker, vacation_request_id)
