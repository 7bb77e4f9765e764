import logging

import aiohttp

from lib.config import Settings
from lib.error_handler import DeliveryFailure, must_succeed

logger = logging.getLogger(__name__)


class WhatsAppService:
    def __init__(self, settings: Settings):
        self.messages_url = settings.messages_url
        self.token = settings.wa_token
        self.timeout = aiohttp.ClientTimeout(total=settings.request_timeout_seconds)
        logger.info(f"WhatsApp service initialized with phone id: {settings.phone_id}")

    async def deliver_reply(self, to_number: str, message: str) -> None:
        """Send a text message through the WhatsApp Cloud API. Raises DeliveryFailure."""
        await must_succeed(lambda: self._send(to_number, message), DeliveryFailure)

    async def _send(self, to_number: str, message: str) -> None:
        logger.info(f"Sending WhatsApp reply to {to_number}: {message[:20]}...")
        payload = {
            'messaging_product': 'whatsapp',
            'to': to_number,
            'text': {'body': message}
        }
        headers = {'Authorization': f"Bearer {self.token}"}

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(self.messages_url, json=payload, headers=headers) as response:
                if response.status >= 300:
                    body = await response.text()
                    raise DeliveryFailure(f"WhatsApp API returned {response.status}: {body}")
        logger.info(f"Message sent successfully to {to_number}")
