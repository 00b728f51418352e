from __future__ import annotations
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from ..models import OtpCode


async def create_otp(
    db: AsyncSession,
    *,
    email: str,
    phone: str,
    code: str,
    otp_type: str,
    created_at: datetime,
    expires_at: datetime,
) -> OtpCode:
    otp = OtpCode(
        email=email,
        phone=phone,
        code=code,
        type=otp_type,
        used=False,
        attempts=0,
        created_at=created_at,
        expires_at=expires_at,
    )
    db.add(otp)
    await db.flush()
    return otp


async def get_latest(db: AsyncSession, email: str) -> Optional[OtpCode]:
    """Newest record for the email, used or not. Anything older is superseded."""
    res = await db.execute(
        select(OtpCode)
        .where(OtpCode.email == email)
        .order_by(OtpCode.created_at.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


async def increment_attempts(db: AsyncSession, otp_id: uuid.UUID) -> None:
    await db.execute(
        update(OtpCode)
        .where(OtpCode.id == otp_id)
        .values(attempts=OtpCode.attempts + 1)
    )


async def mark_used(db: AsyncSession, otp_id: uuid.UUID, *, verified_at: datetime, max_attempts: int) -> bool:
    """Consume the code. Returns False when another request consumed it (or locked it out) first."""
    res = await db.execute(
        update(OtpCode)
        .where(
            OtpCode.id == otp_id,
            OtpCode.used.is_(False),
            OtpCode.attempts < max_attempts,
        )
        .values(used=True, verified_at=verified_at)
    )
    return res.rowcount == 1
