from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..errors import Internal, InvalidArgument
from ..observability.metrics import OTP_VERIFY
from ..repos import otp_codes as otp_repo

logger = logging.getLogger(__name__)

MSG_VERIFIED = "OTP verified successfully"
MSG_INVALID = "Invalid OTP code"
MSG_EXPIRED = "OTP has expired. Please request a new code."
MSG_LOCKED = "Too many verification attempts. Please request a new code."


@dataclass(frozen=True)
class VerifyOutcome:
    success: bool
    message: str

    def as_response(self) -> Dict[str, object]:
        return {"success": self.success, "message": self.message}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # some drivers (sqlite) hand back naive datetimes; they were written as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _fail(outcome: str, message: str) -> VerifyOutcome:
    OTP_VERIFY.labels(outcome=outcome).inc()
    return VerifyOutcome(success=False, message=message)


async def verify_otp(
    db: AsyncSession,
    *,
    settings: Settings,
    email: Optional[str],
    code: Optional[str],
) -> VerifyOutcome:
    """Check a submitted code against the newest record for the email.

    Only that record is ever eligible; once it is used, older codes stay dead.

    Wrong, expired and locked-out codes are normal outcomes returned as data.
    The record is consumed with a single conditional update, so two concurrent
    requests cannot both succeed.
    """
    if not email or not email.strip() or not code or not code.strip():
        raise InvalidArgument("Email and OTP code are required")

    normalized_email = email.strip().lower()
    code = code.strip()
    logger.info("Verifying OTP for %s", normalized_email)

    try:
        otp = await otp_repo.get_latest(db, normalized_email)

        if otp is None or otp.used:
            # the newest code already consumed means every older one is dead too
            logger.info("No pending OTP for %s", normalized_email)
            return _fail("invalid", MSG_INVALID)

        if otp.code != code:
            if settings.OTP_COUNT_FAILED_ATTEMPTS:
                await otp_repo.increment_attempts(db, otp.id)
                await db.commit()
            logger.info("Wrong OTP for %s", normalized_email)
            return _fail("invalid", MSG_INVALID)

        now = _now_utc()
        if now > _as_utc(otp.expires_at):
            logger.info("OTP expired for %s", normalized_email)
            return _fail("expired", MSG_EXPIRED)

        if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
            logger.info("Too many attempts for %s", normalized_email)
            return _fail("locked", MSG_LOCKED)

        consumed = await otp_repo.mark_used(
            db, otp.id, verified_at=now, max_attempts=settings.OTP_MAX_ATTEMPTS
        )
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.exception("Error verifying OTP")
        raise Internal(f"Failed to verify OTP: {exc}") from exc

    if not consumed:
        # a concurrent request got there first
        logger.info("OTP for %s was consumed concurrently", normalized_email)
        return _fail("invalid", MSG_INVALID)

    OTP_VERIFY.labels(outcome="verified").inc()
    logger.info("OTP verified for %s", normalized_email)
    return VerifyOutcome(success=True, message=MSG_VERIFIED)
