"""Pytest configuration and fixtures."""

import os

# hris.config reads the URL at import time
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hris.auth import AccessService, get_access_checker
from hris.db import Base, get_db
from hris.main import app
from hris.models import Employee, User

HEADERS = {"X-User-Id": "user-1", "X-Tenant-Id": "tenant-1", "X-Roles": "Admin"}


class StubChecker:
    """Allows everything except the (entity, operation) pairs in ``denied``; records every question."""

    def __init__(self, allow=True, denied=()):
        self.allow = allow
        self.denied = set(denied)
        self.calls = []

    def has_access(self, subject, entity, operation, record_id=None, service=AccessService.PROJECT):
        self.calls.append((entity, operation.value, record_id))
        if (entity, operation.value) in self.denied:
            return False
        return self.allow


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def checker():
    return StubChecker()


@pytest.fixture
def client(session_factory, checker):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_access_checker] = lambda: checker
    try:
        with TestClient(app, headers=HEADERS) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def user(session):
    u = User(id="U1", email="ann@example.com", roq_user_id="roq-1", tenant_id="tenant-1")
    session.add(u)
    session.commit()
    return u


@pytest.fixture
def employee(session):
    e = Employee(id="E1", first_name="Ann", last_name="Lee", vacation_days=25, payroll=5000)
    session.add(e)
    session.commit()
    return e
