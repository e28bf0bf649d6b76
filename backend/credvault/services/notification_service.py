"""Email delivery for credential notifications."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from credvault.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_ENV = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)


class Notifier(Protocol):
    """Sends a single HTML email and reports whether it went out."""

    async def send(
        self, subject: str, html_body: str, recipient: str, sender: str
    ) -> bool: ...


def build_password_reset_email(
    *, name: str, reset_url: str, ttl_minutes: int, app_name: str
) -> tuple[str, str]:
    subject = f"Reset your {app_name} password"
    body = _ENV.get_template("password_reset_email.html").render(
        name=name,
        reset_url=reset_url,
        ttl_minutes=ttl_minutes,
        app_name=app_name,
    )
    return subject, body


class SmtpNotifier:
    """Deliver email over SMTP from a worker thread."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    async def send(
        self, subject: str, html_body: str, recipient: str, sender: str
    ) -> bool:
        if not recipient:
            logger.debug("No recipient provided for email; skipping")
            return False
        try:
            return await asyncio.to_thread(
                self._deliver, subject, html_body, recipient, sender
            )
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("Failed to send email to %s: %s", recipient, exc)
            return False

    def _deliver(self, subject: str, html_body: str, recipient: str, sender: str) -> bool:
        settings = self._settings
        if not settings.smtp_host or not settings.smtp_port:
            if settings.dev_email_echo:
                logger.info("Email to %s (%s):\n%s", recipient, subject, html_body)
                return True
            logger.warning("SMTP configuration missing; cannot email %s", recipient)
            return False

        message = EmailMessage()
        message["Subject"] = subject
        message["To"] = recipient
        message["From"] = sender
        message.set_content("This message contains HTML content.")
        message.add_alternative(html_body, subtype="html")

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            if settings.smtp_username and settings.smtp_password:
                try:
                    server.starttls()
                except smtplib.SMTPException:
                    logger.debug("SMTP server does not support STARTTLS")
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(message)
        logger.info("Email sent to %s", recipient)
        return True


__all__ = ["Notifier", "SmtpNotifier", "build_password_reset_email"]
