"""Background sweep that moves finished events to the "elapsed" status.

Events that end without being completed or cancelled would otherwise keep
showing as booked or scheduled. The sweep runs once at startup, then every
``status_sweep_interval_minutes``. Missed runs are collapsed into one and
two sweeps never overlap.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from labchat.calendar.service import mark_elapsed_events
from labchat.core.config import settings
from labchat.core.database import engine

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "event_status_sweep"

scheduler = AsyncIOScheduler()


def status_sweep_job() -> int:
    """
    Mark every event that has ended as elapsed.

    Returns the number of events changed. A failing sweep is logged and
    reported as 0; the next interval tries again.
    """
    try:
        with Session(engine) as session:
            updated = mark_elapsed_events(session)
    except Exception as e:
        logger.error(f"Event status sweep failed, retrying in {settings.status_sweep_interval_minutes} min: {e}")
        return 0

    if updated:
        logger.info(f"Event status sweep: {updated} events marked elapsed")
    else:
        logger.debug("Event status sweep: nothing to mark")
    return updated


def start_scheduler():
    """Register the status sweep, start the scheduler and sweep once right away."""
    scheduler.add_job(
        status_sweep_job,
        trigger=IntervalTrigger(minutes=settings.status_sweep_interval_minutes),
        id=SWEEP_JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()
    logger.info(
        f"Event status sweep scheduled every {settings.status_sweep_interval_minutes} minutes"
    )
    status_sweep_job()


def shutdown_scheduler():
    """Stop the sweep without waiting for a run in progress."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Event status sweep stopped")
