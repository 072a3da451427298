"""
app/scheduler/jobs.py

APScheduler-based background jobs for the marketing flows.

Schedule
--------
  marketing_brief   13:00 UTC every day (yesterday, default properties)
  competitor_watch  every 6 hours
  self_healing      every 15 minutes
  analytics_sync    every 6 hours (yesterday, one report per property)
  opportunity_scan  09:00 America/New_York every day
  rate_limit_sweep  every 60 seconds
  email_dispatch    every 15 minutes

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.

Every job catches and logs its own failure so one bad run never stops the
scheduler.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.api.rate_limiter import get_rate_limiter
from app.config import (
    get_analytics_settings,
    get_notification_settings,
    get_opportunity_settings,
    get_rate_limit_settings,
    get_scheduler_settings,
)
from app.connectors.providers import get_ga4_connector, get_news_connector
from app.logging_utils import log_event
from app.notifications.providers import get_chat_notifier, get_email_notifier, get_notification_dispatcher
from app.repositories.opportunity_repository import OpportunityRepository
from app.repositories.scheduled_email_repository import ScheduledEmailRepository
from app.repositories.system_state_repository import SystemStateRepository
from app.scraping.config import get_competitor_watch_settings
from app.scraping.storage import SQLAlchemySnapshotStorage
from app.services.analytics_service import AnalyticsService
from app.services.competitor_watch_service import CompetitorWatchService, make_chat_alert_hook
from app.services.email_dispatch_service import EmailDispatchService
from app.services.llm_provider import get_llm_adapter
from app.services.marketing_brief_service import MarketingBriefService
from app.services.opportunity_scanner_service import OPPORTUNITY_SOURCES, OpportunityScannerService
from app.services.self_healing_service import (
    HEALTH_STATE_KEY,
    OverallStatus,
    SelfHealingService,
    default_health_checks,
)
from db.session import session_scope

logger = logging.getLogger(__name__)

MARKETING_BRIEF_STATE_KEY = "marketing_brief"


# ---------------------------------------------------------------------------
# State helper
# ---------------------------------------------------------------------------


def _store_state(db: Session, key: str, payload: dict) -> None:
    try:
        SystemStateRepository(db).put(key, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---------------------------------------------------------------------------
# Job: Daily marketing brief
# ---------------------------------------------------------------------------


def run_marketing_brief() -> None:
    """
    Generate yesterday's brief for the default properties and keep it in
    system state.
    """
    logger.info("Scheduler: marketing_brief starting")
    try:
        with session_scope() as db:
            settings = get_analytics_settings()
            analytics = AnalyticsService(client=get_ga4_connector(), settings=settings, session=db)
            brief = MarketingBriefService(analytics=analytics, adapter=get_llm_adapter()).generate(
                date_range="yesterday",
                properties=list(settings.default_properties),
            )
            _store_state(db, MARKETING_BRIEF_STATE_KEY, brief)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: marketing_brief failed: %s", exc)
        return
    logger.info("Scheduler: marketing_brief complete")


# ---------------------------------------------------------------------------
# Job: Competitor watch
# ---------------------------------------------------------------------------


def run_competitor_watch() -> None:
    """
    Quick check of every configured competitor page.
    """
    logger.info("Scheduler: competitor_watch starting")
    try:
        with session_scope() as db:
            result = CompetitorWatchService(
                storage=SQLAlchemySnapshotStorage(session=db),
                adapter=get_llm_adapter(),
                settings=get_competitor_watch_settings(),
                on_action_required=(make_chat_alert_hook(get_notification_dispatcher(), get_chat_notifier()),),
            ).run(check_type="quick")
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: competitor_watch failed: %s", exc)
        return
    logger.info(
        "Scheduler: competitor_watch complete changes=%d action_required=%s",
        len(result["changes"]),
        result["actionRequired"],
    )


# ---------------------------------------------------------------------------
# Job: Self-healing health check
# ---------------------------------------------------------------------------


def run_self_healing() -> None:
    """
    Run every health check, store the result under ``health`` and log a
    ``critical_status`` event when anything is down.
    """
    try:
        result = SelfHealingService(
            checks=default_health_checks(
                analytics_settings=get_analytics_settings(),
                notification_settings=get_notification_settings(),
            )
        ).run()
        if result["status"] == OverallStatus.CRITICAL:
            log_event(
                logger,
                logging.CRITICAL,
                "critical_status",
                services=[s["name"] for s in result["services"] if s["status"] == "error"],
                actions_taken=result["actionsTaken"],
            )
        with session_scope() as db:
            _store_state(db, HEALTH_STATE_KEY, {**result, "checkedAt": datetime.now(timezone.utc).isoformat()})
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: self_healing failed: %s", exc)


# ---------------------------------------------------------------------------
# Job: Analytics sync
# ---------------------------------------------------------------------------


def run_analytics_sync() -> None:
    """
    Store yesterday's report for every configured property.
    """
    logger.info("Scheduler: analytics_sync starting")
    try:
        with session_scope() as db:
            summary = AnalyticsService(
                client=get_ga4_connector(),
                settings=get_analytics_settings(),
                session=db,
            ).sync_daily()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: analytics_sync failed: %s", exc)
        return
    logger.info(
        "Scheduler: analytics_sync complete synced=%d failed=%d",
        len(summary["synced"]),
        len(summary["failed"]),
    )


# ---------------------------------------------------------------------------
# Job: Opportunity scan
# ---------------------------------------------------------------------------


def run_opportunity_scan() -> None:
    """
    Scan every source and keep high-priority opportunities as ``new``.
    """
    logger.info("Scheduler: opportunity_scan starting")
    settings = get_opportunity_settings()
    try:
        result = OpportunityScannerService(
            adapter=get_llm_adapter(),
            settings=settings,
            news=get_news_connector(),
        ).scan(sources=OPPORTUNITY_SOURCES)
        high_priority = [
            item for item in result["opportunities"] if item["relevanceScore"] >= settings.high_priority_threshold
        ]
        with session_scope() as db:
            try:
                stored = OpportunityRepository(db).add_many(high_priority, detected_at=datetime.now(timezone.utc))
                db.commit()
            except Exception:
                db.rollback()
                raise
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: opportunity_scan failed: %s", exc)
        return
    logger.info("Scheduler: opportunity_scan complete found=%d stored=%d", result["totalFound"], stored)


# ---------------------------------------------------------------------------
# Job: Rate-limit sweep
# ---------------------------------------------------------------------------


def run_rate_limit_sweep() -> None:
    removed = get_rate_limiter().sweep()
    if removed:
        logger.debug("Scheduler: rate_limit_sweep removed=%d", removed)


# ---------------------------------------------------------------------------
# Job: Pending email dispatch
# ---------------------------------------------------------------------------


def run_email_dispatch() -> None:
    """
    Send due queued emails and mark each row sent or failed.
    """
    settings = get_notification_settings()
    try:
        with session_scope() as db:
            counts = EmailDispatchService(
                repository=ScheduledEmailRepository(db),
                notifier=get_email_notifier(),
                batch_size=settings.email_batch_size,
                send_delay_seconds=settings.email_send_delay_seconds,
            ).dispatch_due()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: email_dispatch failed: %s", exc)
        return
    if counts["sent"] or counts["failed"]:
        logger.info("Scheduler: email_dispatch sent=%d failed=%d", counts["sent"], counts["failed"])


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    settings = get_scheduler_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_marketing_brief,
        trigger="cron",
        hour=13,
        minute=0,
        id="marketing_brief",
        name="Daily marketing brief",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.add_job(
        run_competitor_watch,
        trigger="interval",
        hours=settings.competitor_watch_interval_hours,
        id="competitor_watch",
        name="Competitor watch",
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=1800,
    )
    scheduler.add_job(
        run_self_healing,
        trigger="interval",
        minutes=settings.health_interval_minutes,
        id="self_healing",
        name="Self-healing health check",
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=300,
    )
    scheduler.add_job(
        run_analytics_sync,
        trigger="interval",
        hours=settings.analytics_sync_interval_hours,
        id="analytics_sync",
        name="Analytics daily report sync",
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=1800,
    )
    scheduler.add_job(
        run_opportunity_scan,
        trigger="cron",
        hour=9,
        minute=0,
        timezone=settings.opportunity_timezone,
        id="opportunity_scan",
        name="Daily opportunity scan",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.add_job(
        run_rate_limit_sweep,
        trigger="interval",
        seconds=get_rate_limit_settings().sweep_interval_seconds,
        id="rate_limit_sweep",
        name="Rate-limit entry sweep",
        replace_existing=True,
        max_instances=1,
    )
    scheduler.add_job(
        run_email_dispatch,
        trigger="interval",
        minutes=settings.email_dispatch_interval_minutes,
        id="email_dispatch",
        name="Pending email dispatch",
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=300,
    )

    return scheduler
