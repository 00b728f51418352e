from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from ..models import SmsLog


async def add_sent_log(
    db: AsyncSession,
    *,
    to: str,
    original_phone: str,
    message: str,
    twilio_sid: str,
    twilio_status: Optional[str],
    sent_at: datetime,
    details: dict,
) -> SmsLog:
    log = SmsLog(
        to=to,
        original_phone=original_phone,
        message=message,
        type="otp",
        status="sent",
        twilio_sid=twilio_sid,
        twilio_status=twilio_status,
        sent_at=sent_at,
        details=details,
    )
    db.add(log)
    await db.flush()
    return log


async def add_failed_log(
    db: AsyncSession,
    *,
    to: str,
    message: str,
    error: str,
    failed_at: datetime,
) -> SmsLog:
    log = SmsLog(to=to, message=message, type="otp", status="failed", error=error, failed_at=failed_at)
    db.add(log)
    await db.flush()
    return log


async def get_by_twilio_sid(db: AsyncSession, twilio_sid: str) -> Optional[SmsLog]:
    """First log row carrying this gateway message id (sids are unique per send)."""
    res = await db.execute(
        select(SmsLog)
        .where(SmsLog.twilio_sid == twilio_sid)
        .limit(1)
    )
    return res.scalars().first()


async def update_twilio_status(db: AsyncSession, log: SmsLog, *, twilio_status: str, updated_at: datetime) -> None:
    log.twilio_status = twilio_status
    log.last_updated = updated_at
    await db.flush()
