# backend/hris/config.py
"""
Process-wide configuration.

Runtime settings come from the environment (``DATABASE_URL``,
``FRONTEND_ORIGIN``, ``LOG_LEVEL``, ``HRIS_DEBOUNCE_MS``). The application
config describes the tenant model: which roles own the application, which
belong to a tenant, which are customers, and what each tenant role may do.
"""
from __future__ import annotations

import os
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    database_url: str
    frontend_origin: str
    log_level: str = "INFO"
    debounce_ms: int = 300


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv(
            "DATABASE_URL",
            "postgresql+psycopg://hris:devpass@db:5432/hris",
        ),
        frontend_origin=os.getenv("FRONTEND_ORIGIN", "http://localhost:3000"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        debounce_ms=int(os.getenv("HRIS_DEBOUNCE_MS", "300")),
    )


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner_roles: List[str]
    customer_roles: List[str]
    tenant_roles: List[str]
    tenant_name: str
    application_name: str
    add_ons: List[str] = Field(default_factory=list)
    # role -> entity kind -> allowed operations ("*" matches any entity kind)
    grants: Dict[str, Dict[str, List[str]]] = Field(default_factory=dict)


app_config = AppConfig(
    owner_roles=["Owner"],
    customer_roles=["Guest"],
    tenant_roles=["Owner", "Admin", "Employee", "HR Manager"],
    tenant_name="Company",
    application_name="HR Information System",
    add_ons=["file upload", "chat", "notifications", "file"],
    grants={
        "Admin": {"*": ["create", "read", "update", "delete"]},
        "HR Manager": {
            "employee": ["create", "read", "update", "delete"],
            "vacation_request": ["create", "read", "update", "delete"],
            "company": ["read"],
        },
        "Employee": {
            "employee": ["read"],
            "vacation_request": ["create", "read", "update"],
            "company": ["read"],
        },
        "Guest": {"company": ["read"]},
    },
)

settings = load_settings()
