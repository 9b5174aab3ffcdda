from typing import Any, Dict, Optional

import httpx

from app.schemas.notification_schemas import DeliveryChannel, DeliveryOutcome
from app.utils.logging import get_logger

logger = get_logger()


class PushNotificationClient:
    """Sends one message through the push gateway (Expo push API wire format)."""

    HEADERS = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "Accept-Encoding": "gzip, deflate",
    }

    def __init__(self, http_client: httpx.AsyncClient, gateway_url: str):
        self.http_client = http_client
        self.gateway_url = gateway_url

    @staticmethod
    def build_message(
        token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }

    async def send(
        self, token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None
    ) -> DeliveryOutcome:
        message = self.build_message(token, title, body, data)

        try:
            response = await self.http_client.post(
                self.gateway_url, json=message, headers=self.HEADERS
            )
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to send push notification: {str(e)}")
            return DeliveryOutcome(
                channel=DeliveryChannel.PUSH, success=False, error_detail=str(e)
            )

        ticket = result.get("data") if isinstance(result, dict) else None
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            error_message = ticket.get("message") or "push gateway reported an error"
            logger.error(f"Push notification error: {error_message}")
            return DeliveryOutcome(
                channel=DeliveryChannel.PUSH, success=False, error_detail=error_message
            )

        return DeliveryOutcome(channel=DeliveryChannel.PUSH, success=True)


class EmailClient:
    """Posts ``{to, subject, message}`` to the email webhook.

    Any completed 2xx call counts as delivered; the webhook's body is not inspected.
    """

    def __init__(self, http_client: httpx.AsyncClient, webhook_url: str):
        self.http_client = http_client
        self.webhook_url = webhook_url

    async def send(self, to: str, subject: str, message: str) -> DeliveryOutcome:
        try:
            response = await self.http_client.post(
                self.webhook_url,
                json={"to": to, "subject": subject, "message": message},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email to {to}: {str(e)}")
            return DeliveryOutcome(
                channel=DeliveryChannel.EMAIL, success=False, error_detail=str(e)
            )

        return DeliveryOutcome(channel=DeliveryChannel.EMAIL, success=True)
