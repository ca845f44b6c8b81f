"""Scheduled expiry sweep.

Runs ``ExpireOrdersHandler`` on a fixed interval inside an asyncio event
loop. Runs never overlap: a sweep that is still going when the next one
is due makes APScheduler skip that run.
"""

from __future__ import annotations

import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stockledger.application.expire_orders import ExpireOrdersHandler, SweepTotals

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "expire_pending_orders"


async def expire_orders_task(handler: ExpireOrdersHandler) -> SweepTotals | None:
    """Task to cancel expired pending orders"""
    try:
        logger.info("=== EXPIRY SWEEP STARTING ===")
        return await handler.handle()
    except Exception:
        logger.exception("Error in expiry sweep task")
        return None


def _job_listener(event) -> None:
    if event.exception:
        logger.error("Scheduled job %s failed: %s", event.job_id, event.exception)
    else:
        logger.debug("Scheduled job %s executed", event.job_id)


def create_scheduler(handler: ExpireOrdersHandler, interval_minutes: int) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        expire_orders_task,
        trigger=IntervalTrigger(minutes=interval_minutes),
        args=[handler],
        id=SWEEP_JOB_ID,
        name="Cancel expired pending orders",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
    logger.info("Expiry sweep scheduled every %d minute(s)", interval_minutes)
    return scheduler
