"""SMTP mail sender."""

from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any

import aiosmtplib
import structlog

logger = structlog.get_logger()


class SmtpEmailSender:
    """Sends mail through an SMTP relay.

    Opens one connection per message; the relay is expected to sit close to
    the worker, and the dispatcher already bounds concurrent sends.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        start_tls: bool = True,
        timeout: float = 15.0,
    ):
        if not host:
            raise ValueError("SMTP host is required")
        self.host = host
        self.port = port
        self.username = username or None
        self.password = password or None
        self.start_tls = start_tls
        self.timeout = timeout

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        from_email: str = "noreply@example.com",
        from_name: str = "Back in Stock",
        tracking_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one message. Raises aiosmtplib errors on refusal or transport failure."""
        message = EmailMessage()
        message["From"] = formataddr((from_name, from_email))
        message["To"] = to_email
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=from_email.rpartition("@")[2] or None)
        if tracking_id:
            message["X-Tracking-ID"] = tracking_id
        for key, value in (metadata or {}).items():
            message[f"X-Meta-{key.replace('_', '-')}"] = str(value)
        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(html_content, subtype="html")

        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.start_tls,
            timeout=self.timeout,
        )

        logger.info("Email sent via SMTP", to_email=to_email, message_id=message["Message-ID"])
        return {"success": True, "message_id": message["Message-ID"], "status": "sent"}
