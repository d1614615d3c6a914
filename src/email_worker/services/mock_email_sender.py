"""Mock email sender for testing and development."""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog

logger = structlog.get_logger()


class MockDeliveryError(Exception):
    """Raised for recipients the mock sender was told to reject."""


class MockEmailSender:
    """
    Mock email service for testing and development.

    Records messages in memory, and optionally as JSON files, instead of
    sending them. Recipients listed in ``fail_for`` raise MockDeliveryError
    so partial-failure handling can be exercised end to end.
    """

    def __init__(
        self,
        storage_path: str | None = None,
        fail_for: set[str] | None = None,
        delay_seconds: float = 0.0,
    ):
        """
        Initialize the mock email sender.

        Args:
            storage_path: Directory to store mock emails. Nothing is written
                          to disk when omitted.
            fail_for: Recipient addresses whose sends should fail
            delay_seconds: Artificial latency per send
        """
        self.storage_path = Path(storage_path) if storage_path else None
        if self.storage_path:
            self.storage_path.mkdir(parents=True, exist_ok=True)
        self.fail_for = {email.lower() for email in (fail_for or set())}
        self.delay_seconds = delay_seconds
        self.sent_emails: list[dict[str, Any]] = []
        self.attempts: list[str] = []

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
        """
        Simulate sending an email.

        Returns:
            dict: Simulated send result with message_id and status

        Raises:
            MockDeliveryError: ``to_email`` is in ``fail_for``
        """
        self.attempts.append(to_email)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if to_email.lower() in self.fail_for:
            logger.warning("Mock email rejected", to_email=to_email)
            raise MockDeliveryError(f"Simulated delivery failure for {to_email}")

        message_id = tracking_id or str(uuid4())
        timestamp = datetime.now(timezone.utc)

        email_record = {
            "message_id": message_id,
            "to_email": to_email,
            "from_email": from_email,
            "from_name": from_name,
            "subject": subject,
            "html_content": html_content,
            "metadata": metadata or {},
            "sent_at": timestamp.isoformat(),
            "status": "sent",
        }
        self.sent_emails.append(email_record)

        stored_at = None
        if self.storage_path:
            filepath = self.storage_path / f"{timestamp.strftime('%Y%m%d_%H%M%S')}_{message_id}.json"
            with open(filepath, "w") as f:
                json.dump(email_record, f, indent=2)
            stored_at = str(filepath)

        logger.info(
            "Mock email sent",
            message_id=message_id,
            to_email=to_email,
            subject=subject,
            stored_at=stored_at,
        )

        return {
            "success": True,
            "message_id": message_id,
            "status": "sent",
            "stored_at": stored_at,
        }

    def get_sent_emails(self, to_email: str | None = None) -> list[dict[str, Any]]:
        """Sent records, optionally filtered by recipient."""
        if to_email:
            return [e for e in self.sent_emails if e["to_email"] == to_email]
        return list(self.sent_emails)
