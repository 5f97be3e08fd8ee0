"""Helpers for queueing Celery tasks without depending on the broker."""

from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def safe_celery_delay(task, *args, **kwargs) -> Optional[Any]:
    """
    Queue a Celery task, tolerating an unreachable broker.

    When the broker is down (e.g. no Redis in local development) the failure
    is logged and None is returned instead of raising.

    Args:
        task: Celery task to queue
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        The AsyncResult from task.delay(), or None if nothing was queued
    """
    try:
        result = task.delay(*args, **kwargs)
        logger.debug(f"Celery task {task.name} queued with ID: {result.id}")
        return result
    except Exception as e:
        # Broker errors come from kombu/redis and share no common base class
        logger.warning(
            f"Failed to queue Celery task {task.name}: {e}. "
            f"Continuing without background task execution."
        )
        return None
