from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..errors import Internal, InvalidArgument
from ..observability.metrics import OTP_CHANNEL, OTP_ISSUED
from ..repos import mail as mail_repo
from ..repos import otp_codes as otp_repo
from ..repos import sms_logs as sms_repo
from .email_template import build_email_template, build_sms_message
from .phone import normalize_phone
from .sms import SentMessage

logger = logging.getLogger(__name__)

DEFAULT_OTP_TYPE = "registration"


class SmsSender(Protocol):
    async def send_sms(self, *, to: str, body: str) -> SentMessage: ...


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of one issue step: a payload on success, the error text on failure."""

    success: bool
    payload: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def ok(cls, **payload: Any) -> "ChannelResult":
        return cls(success=True, payload=payload)

    @classmethod
    def failed(cls, error: str) -> "ChannelResult":
        return cls(success=False, error=error)

    def as_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, **self.payload}
        return {"success": False, "error": self.error}


@dataclass(frozen=True)
class IssueOutcome:
    email: ChannelResult
    sms: ChannelResult
    store: ChannelResult

    @property
    def success(self) -> bool:
        # Delivered if at least one channel reached the user; the stored record does not count.
        return self.email.success or self.sms.success

    @property
    def message(self) -> str:
        return "OTP sent successfully" if self.success else "Failed to send OTP via all channels"

    def as_response(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "results": {
                "email": self.email.as_dict(),
                "sms": self.sms.as_dict(),
                # key kept for existing mobile clients
                "firestore": self.store.as_dict(),
            },
            "message": self.message,
        }


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def _count(channel: str, result: ChannelResult) -> ChannelResult:
    OTP_CHANNEL.labels(channel=channel, outcome="ok" if result.success else "failed").inc()
    return result


async def _queue_email(
    db: AsyncSession,
    settings: Settings,
    *,
    email: str,
    name: str,
    otp_code: str,
    otp_type: str,
) -> ChannelResult:
    try:
        req = await mail_repo.add_mail_request(
            db,
            to=[email],
            subject=settings.EMAIL_SUBJECT,
            html=build_email_template(name, otp_code, settings.OTP_TTL_MINUTES),
            mail_type=otp_type,
            created_at=_now_utc(),
        )
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.exception("Email queueing failed for %s", email)
        return ChannelResult.failed(str(exc))

    logger.info("Email queued for %s (mail id %s)", email, req.id)
    return ChannelResult.ok(id=str(req.id))


async def _send_sms(
    db: AsyncSession,
    settings: Settings,
    sms: SmsSender,
    *,
    email: str,
    phone: str,
    name: str,
    otp_code: str,
) -> ChannelResult:
    try:
        formatted = normalize_phone(phone, settings.DEFAULT_COUNTRY_CODE)
        body = build_sms_message(name, otp_code, settings.OTP_TTL_MINUTES)
        logger.info("Sending OTP SMS to %s", formatted)

        sent = await sms.send_sms(to=formatted, body=body)

        await sms_repo.add_sent_log(
            db,
            to=formatted,
            original_phone=phone,
            message=body,
            twilio_sid=sent.sid,
            twilio_status=sent.status,
            sent_at=_now_utc(),
            details={"email": email, "name": name, "otpCode": otp_code},
        )
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.exception("SMS delivery failed for %s", phone)
        # every attempt gets a log row, failed ones included
        await sms_repo.add_failed_log(
            db,
            to=phone,
            message=f"OTP: {otp_code}",
            error=str(exc),
            failed_at=_now_utc(),
        )
        await db.commit()
        return ChannelResult.failed(str(exc))

    logger.info("SMS sent to %s. SID: %s", formatted, sent.sid)
    return ChannelResult.ok(twilioSid=sent.sid, status=sent.status, phone=formatted)


async def _store_otp(
    db: AsyncSession,
    settings: Settings,
    *,
    email: str,
    phone: str,
    otp_code: str,
    otp_type: str,
) -> ChannelResult:
    try:
        created_at = _now_utc()
        otp = await otp_repo.create_otp(
            db,
            email=email,
            phone=phone.strip(),
            code=otp_code,
            otp_type=otp_type,
            created_at=created_at,
            expires_at=created_at + timedelta(minutes=settings.OTP_TTL_MINUTES),
        )
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.exception("Storing OTP failed for %s", email)
        return ChannelResult.failed(str(exc))

    logger.info("OTP stored for %s (id %s)", email, otp.id)
    return ChannelResult.ok(id=str(otp.id))


async def send_otp(
    db: AsyncSession,
    *,
    settings: Settings,
    sms: SmsSender,
    email: Optional[str],
    phone: Optional[str],
    name: Optional[str],
    otp_code: Optional[str],
    otp_type: Optional[str] = None,
) -> IssueOutcome:
    """Queue the email, send the SMS and store the code.

    The three steps are isolated from each other: each commits or rolls back on its
    own and records its failure instead of raising. Only errors escaping that
    isolation (e.g. the failed-SMS log itself cannot be written) raise Internal.
    """
    if _blank(email) or _blank(phone) or _blank(otp_code):
        raise InvalidArgument("Email, phone, and OTP code are required")

    normalized_email = email.strip().lower()
    otp_type = otp_type or DEFAULT_OTP_TYPE
    name = name or ""

    try:
        logger.info("Sending OTP to %s and %s", normalized_email, phone)
        email_result = _count("email", await _queue_email(
            db, settings, email=normalized_email, name=name, otp_code=otp_code, otp_type=otp_type,
        ))
        sms_result = _count("sms", await _send_sms(
            db, settings, sms, email=email, phone=phone, name=name, otp_code=otp_code,
        ))
        store_result = _count("store", await _store_otp(
            db, settings, email=normalized_email, phone=phone, otp_code=otp_code, otp_type=otp_type,
        ))
    except Exception as exc:
        logger.exception("Error in send_otp")
        raise Internal(f"Failed to send OTP: {exc}") from exc

    outcome = IssueOutcome(email=email_result, sms=sms_result, store=store_result)
    OTP_ISSUED.labels(outcome="sent" if outcome.success else "failed").inc()
    if not outcome.success:
        logger.warning("OTP for %s could not be delivered on any channel", normalized_email)
    return outcome
