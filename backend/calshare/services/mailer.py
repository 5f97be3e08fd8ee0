"""Calendar invite e-mails delivered over implicit-TLS SMTP."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email import policy
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

from calshare.core.config import Settings
from calshare.core.errors import MailFailure

logger = logging.getLogger(__name__)

BOUNDARY = "0000"
ATTACHMENT_NAME = "invite.ics"


def _single_line(field: str, value: str) -> str:
    if "\r" in value or "\n" in value:
        raise MailFailure(f"{field} must not contain line breaks")
    return value


class InviteMailer:
    """Renders an invite and sends it once; failures raise MailFailure."""

    def __init__(
        self,
        address: str,
        username: str,
        password: str,
        sender: str,
        sender_name: str = "Calshare",
        port: int = 465,
        timeout: float = 30.0,
    ) -> None:
        self.address = address
        self.username = username
        self.password = password
        self.sender = sender
        self.sender_name = sender_name
        self.port = port
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "InviteMailer":
        return cls(
            address=settings.SMTP_ADDRESS,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            sender=settings.SMTP_FROM,
            sender_name=settings.SMTP_FROM_NAME,
            port=settings.SMTP_PORT,
            timeout=settings.SMTP_TIMEOUT,
        )

    def render(
        self,
        recipient_name: str,
        recipient_email: str,
        content: str,
        subject: str,
    ) -> EmailMessage:
        """Build the multipart/mixed invite message.

        The calendar data goes in twice: inline as ``text/calendar`` and as a
        base64 ``application/ics`` attachment. The SMTP policy serializes
        with CRLF line endings.
        """
        msg = EmailMessage(policy=policy.SMTP)
        try:
            msg["Subject"] = _single_line("Subject", subject)
            msg["To"] = Address(
                display_name=_single_line("Recipient name", recipient_name),
                addr_spec=recipient_email,
            )
            msg["From"] = Address(display_name=self.sender_name, addr_spec=self.sender)
            msg["Date"] = formatdate(usegmt=True)
            msg["Message-ID"] = make_msgid()
        except (ValueError, HeaderParseError) as exc:
            raise MailFailure(f"Invalid invite header: {exc}") from exc

        msg.set_content(content, subtype="calendar", params={"method": "REQUEST"})
        msg.add_attachment(
            content.encode("utf-8"),
            maintype="application",
            subtype="ics",
            filename=ATTACHMENT_NAME,
            params={"name": ATTACHMENT_NAME},
        )
        msg.set_boundary(BOUNDARY)
        return msg

    def send(
        self,
        recipient_name: str,
        recipient_email: str,
        content: str,
        subject: str,
    ) -> None:
        """Deliver one invite. Nothing is retried or queued here."""
        message = self.render(recipient_name, recipient_email, content, subject)
        # The relay certificate must match the configured address
        context = ssl.create_default_context()
        try:
            with smtplib.SMTP_SSL(
                self.address, self.port, context=context, timeout=self.timeout
            ) as client:
                client.ehlo()
                if not client.has_extn("auth"):
                    raise MailFailure(f"Relay {self.address} does not offer AUTH")
                client.user, client.password = self.username, self.password
                client.auth("PLAIN", client.auth_plain)
                client.sendmail(self.sender, [recipient_email], message.as_bytes())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"Failed to send invite to {recipient_email}: {exc}")
            raise MailFailure(f"Invite delivery to {recipient_email} failed: {exc}") from exc
        logger.info(f"Invite sent to {recipient_email}")
