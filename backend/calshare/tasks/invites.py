"""Celery tasks for invite delivery."""

from __future__ import annotations

import logging

from calshare.celery_app import celery_app
from calshare.core.config import settings
from calshare.core.errors import MailFailure
from calshare.services.mailer import InviteMailer

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=0)
def send_invite_task(
    self,
    recipient_name: str,
    recipient_email: str,
    content: str,
    subject: str,
) -> dict:
    """
    Send one calendar invite in the background.

    Delivery is attempted exactly once; a MailFailure is logged and reported
    in the result rather than retried.

    Args:
        recipient_name: Display name of the invitee
        recipient_email: Address of the invitee
        content: Calendar data to send
        subject: Mail subject

    Returns:
        dict: Result with success flag and error, if any
    """
    mailer = InviteMailer.from_settings(settings)
    try:
        mailer.send(recipient_name, recipient_email, content, subject)
    except MailFailure as exc:
        logger.error(f"Invite task {self.request.id} to {recipient_email} failed: {exc}")
        return {
            "success": False,
            "recipient_email": recipient_email,
            "error": str(exc),
        }

    return {"success": True, "recipient_email": recipient_email}
