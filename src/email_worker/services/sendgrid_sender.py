"""SendGrid v3 mail API sender."""

from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridEmailSender:
    """Sends mail through the SendGrid HTTP API.

    One ``httpx.AsyncClient`` is shared across sends so a batch reuses its
    connection pool; call ``aclose`` on shutdown.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ValueError("SendGrid API key is required")
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

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
        """Send one message. Raises httpx errors on transport or API failure."""
        payload: dict[str, Any] = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": from_email, "name": from_name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html_content}],
        }
        if tracking_id or metadata:
            payload["custom_args"] = {
                **{k: str(v) for k, v in (metadata or {}).items()},
                **({"tracking_id": tracking_id} if tracking_id else {}),
            }

        response = await self.client.post(
            SENDGRID_SEND_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        response.raise_for_status()

        message_id = response.headers.get("X-Message-Id")
        logger.info("Email sent via SendGrid", to_email=to_email, message_id=message_id)
        return {"success": True, "message_id": message_id, "status": "sent"}

    async def aclose(self) -> None:
        await self.client.aclose()
