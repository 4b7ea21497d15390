"""Celery tasks for delivery job monitoring."""

from __future__ import annotations

import asyncio
import logging

from celery_app import celery
from src.database.engine import async_session
from src.modules.delivery_job.constants import STALE_JOB_TASK_NAME
from src.modules.workflow.constants import STALE_JOB_THRESHOLD

logger = logging.getLogger(__name__)


async def _report_stale_jobs_async() -> dict:
    """Count OPEN jobs nobody has picked up within the stale threshold."""
    from src.modules.delivery_job.service import DeliveryJobService

    async with async_session() as session:
        stats = await DeliveryJobService(session).get_stats()

    if stats["stale_jobs"] > 0:
        logger.warning(
            "%d delivery job(s) still OPEN after %s; manual assignment may be needed",
            stats["stale_jobs"],
            STALE_JOB_THRESHOLD,
        )
    return stats


@celery.task(name=STALE_JOB_TASK_NAME)
def report_stale_jobs():
    """Periodic task: surface unassigned jobs to the admin dashboard and logs."""
    stats = asyncio.run(_report_stale_jobs_async())
    logger.info("report_stale_jobs: %s", stats)
    return stats
