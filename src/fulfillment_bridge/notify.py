"""Out-of-band alerts for fulfillments that could not be pushed to Fishbowl."""

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from fulfillment_bridge.config import Settings
from fulfillment_bridge.metrics import ALERT_FAILURES_TOTAL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailureAlert:
    order_number: str | None
    event_id: str
    topic: str | None
    shop_domain: str | None
    error_message: str


class FailureNotifier(Protocol):
    async def notify(self, alert: FailureAlert) -> None: ...


class EmailNotifier:
    def __init__(
        self,
        smtp_host: str | None,
        smtp_port: int | None,
        smtp_user: str | None,
        smtp_password: str | None,
        from_email: str | None,
        to_email: str | None,
        timeout: float = 15.0,
    ) -> None:
        self._host = smtp_host
        self._port = smtp_port
        self._user = smtp_user
        self._password = smtp_password
        self._from = from_email
        self._to = to_email
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailNotifier":
        return cls(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_pass,
            from_email=settings.alert_from_email,
            to_email=settings.alert_to_email,
        )

    @property
    def enabled(self) -> bool:
        return bool(self._host and self._port and self._from and self._to)

    def format_message(self, alert: FailureAlert) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"Fishbowl fulfillment FAILED for Shopify order {alert.order_number}"
        msg["From"] = self._from
        msg["To"] = self._to
        msg.set_content(
            "\n".join(
                [
                    "Shopify to Fishbowl fulfillment failed.",
                    "",
                    f"Order: {alert.order_number}",
                    f"Shop: {alert.shop_domain or 'unknown'}",
                    f"Topic: {alert.topic or 'unknown'}",
                    f"Event ID: {alert.event_id}",
                    "",
                    "Error:",
                    alert.error_message or "Unknown error",
                ]
            )
        )
        return msg

    def _send(self, msg: EmailMessage) -> None:
        if self._port == 465:
            server = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        else:
            server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        with server:
            if self._port != 465:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if self._user and self._password:
                server.login(self._user, self._password)
            server.send_message(msg)

    async def notify(self, alert: FailureAlert) -> None:
        if not self.enabled:
            logger.warning(
                "Email alerts disabled; skipping alert order=%s event=%s topic=%s shop=%s error=%s",
                alert.order_number,
                alert.event_id,
                alert.topic,
                alert.shop_domain,
                alert.error_message,
            )
            return
        try:
            await asyncio.to_thread(self._send, self.format_message(alert))
        except (smtplib.SMTPException, OSError):
            ALERT_FAILURES_TOTAL.inc()
            logger.exception("Failed to send failure alert for event %s", alert.event_id)
            return
        logger.info("Sent failure alert for event %s to %s", alert.event_id, self._to)
