"""Mail senders and the factory that picks one from settings."""

from typing import Any, Protocol

from email_worker.services.mock_email_sender import MockEmailSender
from email_worker.services.sendgrid_sender import SendGridEmailSender
from email_worker.services.smtp_sender import SmtpEmailSender
from restock_service.config import Settings


class EmailSender(Protocol):
    """Async mail-sending capability injected into the dispatcher."""

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        from_email: str = ...,
        from_name: str = ...,
        tracking_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...


def get_email_sender(settings: Settings) -> EmailSender:
    """Build the sender selected by ``settings.email_service``."""
    if settings.email_service == "sendgrid":
        return SendGridEmailSender(
            api_key=settings.sendgrid_api_key,
            timeout=settings.email_api_timeout,
        )
    if settings.email_service == "smtp":
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            start_tls=settings.smtp_start_tls,
            timeout=settings.email_api_timeout,
        )
    return MockEmailSender(storage_path=settings.mock_email_storage_path or None)


async def close_email_sender(sender: EmailSender) -> None:
    """Release transport resources held by ``sender``, if any."""
    aclose = getattr(sender, "aclose", None)
    if aclose is not None:
        await aclose()


__all__ = [
    "EmailSender",
    "MockEmailSender",
    "SendGridEmailSender",
    "SmtpEmailSender",
    "close_email_sender",
    "get_email_sender",
]
