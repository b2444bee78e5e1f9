# backend/hris/routers/employees.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from hris.auth import AccessChecker, Subject, get_access_checker, get_subject
from hris.crud import EntityStore
from hris.db import get_db
from hris.handlers import EntityHandler
from hris.models.employee import Employee
from hris.routes import route_to_entity
from hris.schemas import Page

ROUTE = "employees"

router = APIRouter(prefix=f"/api/{ROUTE}", tags=[ROUTE])
handler = EntityHandler(EntityStore(Employee, route_to_entity(ROUTE)))


@router.get("", response_model=Page)
def list_employees(
    request: Request,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """
    GET /api/employees
    GET /api/employees?relations=_count&searchTerm=ann&searchTermKeys=first_name.contains,last_name.contains
    """
    return handler.list(db, subject, checker, request.query_params)


@router.post("")
def create_employee(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """
    POST /api/employees
    Body: { "first_name": "Ann", "last_name": "Lee", "vacation_days": 25, "payroll": 5000, "user_id": null }
    """
    return handler.create(db, subject, checker, payload)


@router.get("/{employee_id}")
def get_employee(
    employee_id: str,
    request: Request,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    return handler.get(db, subject, checker, employee_id, request.query_params)


@router.put("/{employee_id}")
def update_employee(
    employee_id: str,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """Partial update: only the fields present in the body change."""
    return handler.update(db, subject, checker, employee_id, payload)


@router.delete("/{employee_id}")
def delete_employee(
    employee_id: str,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """Returns the deleted row as it was."""
    return handler.delete(db, subject, checker, employee_id)
