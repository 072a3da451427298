"""
app/main.py

FastAPI entry point: startup validation, logging, lifespan (DB checks and
the background scheduler) and router registration.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from typing import Any

from fastapi import FastAPI

from app.api.responses import register_exception_handlers, success_response

logger = logging.getLogger(__name__)


def _startup_errors() -> list[str]:
    from app.config import get_llm_settings
    from app.services.llm_provider import SUPPORTED_ADAPTERS
    from db.config import DATABASE_URL_VARIABLES, configured_database_url

    errors: list[str] = []
    if configured_database_url() is None:
        errors.append(f"No database URL configured. Set {' or '.join(DATABASE_URL_VARIABLES)}.")

    llm = get_llm_settings()
    if llm.adapter not in SUPPORTED_ADAPTERS:
        errors.append(f"LLM_ADAPTER='{llm.adapter}' is not valid. Allowed values: {sorted(SUPPORTED_ADAPTERS)}.")
    elif llm.adapter != "mock" and not llm.api_key:
        errors.append("LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY.")
    return errors


def _validate_env() -> None:
    """
    Fail fast with every configuration problem listed at once. The API key
    is only required when a real LLM adapter is selected.
    """

    errors = _startup_errors()
    if errors:
        raise RuntimeError(
            "Startup validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
        )


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    from db.session import ping_database

    try:
        ping_database()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _missing_tables() -> list[str]:
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers every table on Base.metadata
    from db.base import Base
    from db.session import get_engine

    existing = set(sa_inspect(get_engine()).get_table_names())
    return sorted(set(Base.metadata.tables) - existing)


def _check_schema() -> None:
    """
    Abort startup when a mapped table is absent. Migrations are never run
    from here; use ``alembic upgrade head``.
    """

    missing = _missing_tables()
    if missing:
        logger.critical("Schema mismatch, missing tables: %s. Run 'alembic upgrade head'.", ", ".join(missing))
        raise RuntimeError(f"Schema mismatch: {len(missing)} table(s) missing ({', '.join(missing)}).")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """
    Validate DB connectivity and schema and start the scheduler on boot;
    stop the scheduler, notification workers and rate limiter on exit.
    """
    _check_db()
    logger.info("Database connectivity confirmed")
    _check_schema()
    logger.info("Database schema validated")

    from app.api.rate_limiter import dispose_rate_limiter
    from app.config import get_scheduler_settings
    from app.notifications.providers import shutdown_notification_dispatcher
    from app.scheduler.jobs import build_scheduler

    scheduler = None
    if get_scheduler_settings().enabled:
        scheduler = build_scheduler()
        scheduler.start()
        logger.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=True)
            logger.info("Scheduler shut down")
        shutdown_notification_dispatcher(wait=True)
        dispose_rate_limiter()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Prometheus Marketing Ops API",
        version="1.0.0",
        lifespan=_lifespan,
    )
    register_exception_handlers(application)

    from app.api.routers import flows_router, leads_router, search_router

    application.include_router(flows_router)
    application.include_router(leads_router)
    application.include_router(search_router)

    @application.get("/health")
    def healthcheck() -> dict[str, Any]:
        return success_response({"status": "ok"})

    return application


app = create_app()
