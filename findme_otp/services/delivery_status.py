from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..observability.metrics import SMS_STATUS_CALLBACKS
from ..repos import sms_logs as sms_repo

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


async def apply_status_callback(
    db: AsyncSession,
    *,
    message_sid: Optional[str],
    message_status: Optional[str],
    to: Optional[str] = None,
) -> bool:
    """Record a Twilio delivery-status callback on the matching SMS log.

    Returns whether a log row matched. An unknown sid is not an error; Twilio
    also reports messages this service did not send.
    """
    logger.info("Twilio webhook: %s - Status: %s (to %s)", message_sid, message_status, to)
    if not message_sid or not message_status:
        SMS_STATUS_CALLBACKS.labels(status=message_status or "", matched="false").inc()
        return False

    log = await sms_repo.get_by_twilio_sid(db, message_sid)
    if log is None:
        SMS_STATUS_CALLBACKS.labels(status=message_status, matched="false").inc()
        return False

    await sms_repo.update_twilio_status(db, log, twilio_status=message_status, updated_at=_now_utc())
    await db.commit()
    SMS_STATUS_CALLBACKS.labels(status=message_status, matched="true").inc()
    logger.info("Updated SMS log for SID: %s", message_sid)
    return True
