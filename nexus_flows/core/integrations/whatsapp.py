"""
WhatsApp Messaging

MessagingService implementations:
- WhatsAppCloudMessagingService: sends text messages through the WhatsApp Cloud API
- LoggingMessagingService: only logs the message (WhatsApp not configured)
"""

import os
import logging
from typing import Any, Dict, Optional

import httpx

from ..exceptions import IntegrationError
from .base import MessagingService

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://graph.facebook.com/v21.0"


class WhatsAppCloudMessagingService(MessagingService):
    """
    WhatsApp Cloud API client.

    Configured by WHATSAPP_TOKEN, WHATSAPP_PHONE_NUMBER_ID and
    (optionally) WHATSAPP_API_URL.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        phone_number_id: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token or os.getenv("WHATSAPP_TOKEN")
        self.phone_number_id = phone_number_id or os.getenv("WHATSAPP_PHONE_NUMBER_ID")
        self.api_url = (api_url or os.getenv("WHATSAPP_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout
        self.transport = transport

        if not self.access_token or not self.phone_number_id:
            raise ValueError("WHATSAPP_TOKEN and WHATSAPP_PHONE_NUMBER_ID are required")

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _get_message_url(self) -> str:
        return f"{self.api_url}/{self.phone_number_id}/messages"

    async def send_message(self, to: str, text: str) -> None:
        payload: Dict[str, Any] = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": "text",
            "text": {"body": text},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self._get_message_url(), json=payload, headers=self._get_headers())
        except httpx.TimeoutException as e:
            raise IntegrationError("Timeout sending WhatsApp message", service="whatsapp") from e
        except httpx.HTTPError as e:
            raise IntegrationError(f"WhatsApp connection error: {e}", service="whatsapp") from e

        if response.status_code >= 400:
            try:
                error_message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                error_message = response.text
            logger.error(f"Error {response.status_code} from WhatsApp API: {error_message}")
            raise IntegrationError(
                f"WhatsApp API error {response.status_code}: {error_message}",
                service="whatsapp",
                status_code=response.status_code,
            )

        logger.debug(f"WhatsApp API response: {response.status_code}")


class LoggingMessagingService(MessagingService):
    """Messaging service that only logs (used when WhatsApp is not configured)."""

    async def send_message(self, to: str, text: str) -> None:
        logger.info(f"WhatsApp not configured, message to {to} not sent: {text}")


def get_messaging_service() -> MessagingService:
    if os.getenv("WHATSAPP_TOKEN") and os.getenv("WHATSAPP_PHONE_NUMBER_ID"):
        return WhatsAppCloudMessagingService()
    return LoggingMessagingService()
