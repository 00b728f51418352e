from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ...db import get_db
from ...services.delivery_status import apply_status_callback

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/twilio", tags=["twilio"])


@router.post("/status", response_class=PlainTextResponse)
async def status_callback(
    message_sid: Optional[str] = Form(None, alias="MessageSid"),
    message_status: Optional[str] = Form(None, alias="MessageStatus"),
    to: Optional[str] = Form(None, alias="To"),
    db: AsyncSession = Depends(get_db),
):
    """
    Twilio message status callback (form encoded).
    Always acknowledged; Twilio retries on 5xx only.
    """
    try:
        await apply_status_callback(db, message_sid=message_sid, message_status=message_status, to=to)
    except Exception:
        logger.exception("Webhook error for SID %s", message_sid)
        return PlainTextResponse("Webhook error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return PlainTextResponse("Webhook received", status_code=status.HTTP_200_OK)
