from __future__ import annotations

import logging

from calshare.core.celery_utils import safe_celery_delay
from calshare.tasks.invites import send_invite_task

logger = logging.getLogger(__name__)


def dispatch_invite(
    recipient_name: str,
    recipient_email: str,
    content: str,
    subject: str,
) -> str | None:
    """Hand an invite to the worker; returns the task id, None if not queued.

    Runs off the request so a slow or failing relay never holds up a write.
    """
    result = safe_celery_delay(
        send_invite_task,
        recipient_name=recipient_name,
        recipient_email=recipient_email,
        content=content,
        subject=subject,
    )
    if result is None:
        logger.warning(f"Invite to {recipient_email} was not queued")
        return None
    logger.info(f"Invite to {recipient_email} queued as task {result.id}")
    return result.id
