# backend/hris/routers/companies.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from hris.auth import AccessChecker, Subject, get_access_checker, get_subject
from hris.crud import EntityStore
from hris.db import get_db
from hris.handlers import EntityHandler
from hris.models.company import Company
from hris.routes import route_to_entity
from hris.schemas import Page

ROUTE = "companies"

router = APIRouter(prefix=f"/api/{ROUTE}", tags=[ROUTE])
handler = EntityHandler(EntityStore(Company, route_to_entity(ROUTE)))


@router.get("", response_model=Page)
def list_companies(
    request: Request,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    """
    GET /api/companies
    GET /api/companies?relations=user&searchTerm=acme&searchTermKeys=name.contains
    """
    return handler.list(db, subject, checker, request.query_params)


@router.post("")
def create_company(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    return handler.create(db, subject, checker, payload)


@router.get("/{company_id}")
def get_company(
    company_id: str,
    request: Request,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    return handler.get(db, subject, checker, company_id, request.query_params)


@router.put("/{company_id}")
def update_company(
    company_id: str,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    return handler.update(db, subject, checker, company_id, payload)


@router.delete("/{company_id}")
def delete_company(
    company_id: str,
    db: Session = Depends(get_db),
    subject: Subject = Depends(get_subject),
    checker: AccessChecker = Depends(get_access_checker),
):
    return handler.delete(db, subject, checker, company_id)
