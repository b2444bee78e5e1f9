# backend/hris/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hris.config import app_config, settings
from hris.db import healthcheck
from hris.errors import install_error_handlers
from hris.routers.access import router as access_router
from hris.routers.companies import router as companies_router
from hris.routers.employees import router as employees_router
from hris.routers.vacation_requests import router as vacation_requests_router


def configure_logging(level: str = settings.log_level) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=f"{app_config.application_name} API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    install_error_handlers(app)

    # Health
    @app.get("/health")
    def health():
        return healthcheck()

    app.include_router(employees_router)
    app.include_router(vacation_requests_router)
    app.include_router(companies_router)
    app.include_router(access_router)

    return app


app = build_app()
