"""
Celery Tasks
Background tasks for order maintenance.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta

from food_ordering.celery_worker import celery_app
from food_ordering.core.config import get_settings
from food_ordering.database import build_engine, build_session_maker
from food_ordering.services.orders import order_repository_scope
from food_ordering.services.retention import RetentionSweeper

logger = logging.getLogger(__name__)


async def _sweep_once() -> int:
    """
    Run one retention sweep on a private engine.

    Every task invocation runs in a fresh event loop, so the pooled
    connections of the application engine cannot be reused here.
    """
    settings = get_settings()
    engine = build_engine(settings.database_url)
    try:
        sweeper = RetentionSweeper(
            order_repository_scope(build_session_maker(engine)),
            retention=timedelta(minutes=settings.retention_minutes),
        )
        return await sweeper.sweep()
    finally:
        await engine.dispose()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def sweep_completed_orders(self) -> dict:
    """
    Remove completed orders past the retention window.
    This task runs on the Celery beat schedule.

    Returns:
        dict: Number of removed orders and timing
    """
    task_id = self.request.id
    start_time = time.time()

    try:
        removed = asyncio.run(_sweep_once())
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"Task {task_id}: retention sweep failed after {elapsed}s - {e}")

        # Celery will auto-retry based on configuration
        raise

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"Task {task_id}: removed {removed} order(s) in {elapsed}s")
    return {
        'task_id': task_id,
        'removed': removed,
        'processing_time_seconds': elapsed,
        'timestamp': datetime.now().isoformat(),
    }
