from __future__ import annotations
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from ..models import MailRequest


async def add_mail_request(
    db: AsyncSession,
    *,
    to: list[str],
    subject: str,
    html: str,
    mail_type: str,
    created_at: datetime,
) -> MailRequest:
    req = MailRequest(to=to, subject=subject, html=html, type=mail_type, status="pending", created_at=created_at)
    db.add(req)
    await db.flush()
    # no commit here; caller’s transaction should commit
    return req
