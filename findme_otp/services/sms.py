from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from requests.exceptions import RequestException
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from ..config import Settings

logger = logging.getLogger(__name__)


class SmsDeliveryError(Exception):
    """The gateway rejected the message or could not be reached."""


@dataclass(frozen=True)
class SentMessage:
    sid: str
    status: Optional[str]


class TwilioSMSService:
    """Thin wrapper around the Twilio REST client with async-friendly send."""

    def __init__(self, settings: Settings, client: Optional[Client] = None) -> None:
        self._from_number: Optional[str] = settings.TWILIO_FROM_NUMBER
        if client is not None:
            self._client: Optional[Client] = client
        elif settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and self._from_number:
            self._client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        else:
            self._client = None
            missing = [
                key
                for key, value in [
                    ("TWILIO_ACCOUNT_SID", settings.TWILIO_ACCOUNT_SID),
                    ("TWILIO_AUTH_TOKEN", settings.TWILIO_AUTH_TOKEN),
                    ("TWILIO_FROM_NUMBER", self._from_number),
                ]
                if not value
            ]
            if missing:
                logger.info("Twilio SMS disabled; missing settings: %s", ", ".join(missing))

    @property
    def enabled(self) -> bool:
        return bool(self._client and self._from_number)

    async def send_sms(self, *, to: str, body: str) -> SentMessage:
        """Send SMS to the provided destination number.

        Raises SmsDeliveryError when the gateway rejects the message or cannot be
        reached (Twilio API errors and transport errors from the HTTP client).
        """
        if not self._client or not self._from_number:
            raise SmsDeliveryError("SMS gateway is not configured")

        loop = asyncio.get_running_loop()
        try:
            message = await loop.run_in_executor(
                None,
                lambda: self._client.messages.create(  # type: ignore[union-attr]
                    from_=self._from_number,
                    to=to,
                    body=body,
                ),
            )
        except (TwilioException, RequestException) as exc:
            # TwilioException: API rejected it; RequestException: connect/timeout in the HTTP client
            logger.warning("Twilio SMS send failed: %s", exc)
            raise SmsDeliveryError(str(exc)) from exc
        return SentMessage(sid=message.sid, status=message.status)
