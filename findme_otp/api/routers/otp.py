from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import Settings
from ...db import get_db
from ...domain.schemas.otp import SendOtpIn, SendOtpOut, VerifyOtpIn, VerifyOtpOut
from ...services.otp_issuer import send_otp
from ...services.otp_verifier import verify_otp
from ...services.sms import TwilioSMSService
from ..deps import get_app_settings, get_sms_service

router = APIRouter(prefix="/otp", tags=["otp"])


@router.post("/send", response_model=SendOtpOut)
async def send(
    payload: SendOtpIn,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    sms: TwilioSMSService = Depends(get_sms_service),
):
    outcome = await send_otp(
        db,
        settings=settings,
        sms=sms,
        email=payload.email,
        phone=payload.phone,
        name=payload.name,
        otp_code=payload.otp_code,
        otp_type=payload.otp_type,
    )
    return outcome.as_response()


@router.post("/verify", response_model=VerifyOtpOut)
async def verify(
    payload: VerifyOtpIn,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    outcome = await verify_otp(db, settings=settings, email=payload.email, code=payload.code)
    return outcome.as_response()
