import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from findme_otp.errors import Internal, InvalidArgument
from findme_otp.models import OtpCode
from findme_otp.repos import otp_codes as otp_repo
from findme_otp.services import otp_verifier
from findme_otp.services.otp_verifier import (
    MSG_EXPIRED, MSG_INVALID, MSG_LOCKED, MSG_VERIFIED, verify_otp,
)

import pytest
pytestmark = pytest.mark.asyncio

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


async def _issue(db: AsyncSession, *, email="a@b.com", code="123456", created_at=T0) -> uuid.UUID:
    otp = await otp_repo.create_otp(
        db,
        email=email,
        phone="0557881454",
        code=code,
        otp_type="registration",
        created_at=created_at,
        expires_at=created_at + timedelta(minutes=10),
    )
    await db.commit()
    return otp.id


async def _load(sessions, otp_id: uuid.UUID) -> OtpCode:
    async with sessions() as s:
        return await s.get(OtpCode, otp_id)


@pytest.fixture
def at(monkeypatch):
    """Pin the verifier's clock."""
    def _set(now: datetime):
        monkeypatch.setattr(otp_verifier, "_now_utc", lambda: now)
    _set(T0 + timedelta(minutes=1))
    return _set


async def test_verifies_exactly_once(db: AsyncSession, sessions, settings, at):
    otp_id = await _issue(db)

    first = await verify_otp(db, settings=settings, email=" A@B.com ", code="123456")
    assert first.success is True
    assert first.message == MSG_VERIFIED

    stored = await _load(sessions, otp_id)
    assert stored.used is True
    assert stored.verified_at is not None

    second = await verify_otp(db, settings=settings, email="a@b.com", code="123456")
    assert second.success is False
    assert second.message == MSG_INVALID


async def test_code_is_trimmed(db: AsyncSession, settings, at):
    await _issue(db)
    outcome = await verify_otp(db, settings=settings, email="a@b.com", code=" 123456 ")
    assert outcome.success is True


async def test_expired_code_leaves_record_untouched(db: AsyncSession, sessions, settings, at):
    otp_id = await _issue(db)
    at(T0 + timedelta(minutes=10, seconds=1))

    outcome = await verify_otp(db, settings=settings, email="a@b.com", code="123456")
    assert outcome.success is False
    assert outcome.message == MSG_EXPIRED

    stored = await _load(sessions, otp_id)
    assert stored.used is False
    assert stored.attempts == 0
    assert stored.verified_at is None


async def test_code_valid_at_exact_expiry(db: AsyncSession, settings, at):
    await _issue(db)
    at(T0 + timedelta(minutes=10))
    outcome = await verify_otp(db, settings=settings, email="a@b.com", code="123456")
    assert outcome.success is True


async def test_lockout_after_three_wrong_codes(db: AsyncSession, sessions, settings, at):
    otp_id = await _issue(db)

    for _ in range(3):
        outcome = await verify_otp(db, settings=settings, email="a@b.com", code="000000")
        assert outcome.message == MSG_INVALID

    assert (await _load(sessions, otp_id)).attempts == 3

    outcome = await verify_otp(db, settings=settings, email="a@b.com", code="123456")
    assert outcome.success is False
    assert outcome.message == MSG_LOCKED

    stored = await _load(sessions, otp_id)
    assert stored.used is False
    assert stored.attempts == 3


async def test_attempt_counting_can_be_disabled(db: AsyncSession, sessions, settings, at):
    settings = settings.model_copy(update={"OTP_COUNT_FAILED_ATTEMPTS": False})
    otp_id = await _issue(db)

    for _ in range(3):
        await verify_otp(db, settings=settings, email="a@b.com", code="000000")

    assert (await _load(sessions, otp_id)).attempts == 0
    outcome = await verify_otp(db, settings=settings, email="a@b.com", code="123456")
    assert outcome.success is True


async def test_newer_code_supersedes_older(db: AsyncSession, sessions, settings, at):
    older = await _issue(db, code="111111", created_at=T0 - timedelta(minutes=2))
    await _issue(db, code="222222", created_at=T0 - timedelta(minutes=1))

    stale = await verify_otp(db, settings=settings, email="a@b.com", code="111111")
    assert stale.success is False
    assert stale.message == MSG_INVALID

    fresh = await verify_otp(db, settings=settings, email="a@b.com", code="222222")
    assert fresh.success is True

    # the older record never becomes usable again
    assert (await _load(sessions, older)).used is False
    again = await verify_otp(db, settings=settings, email="a@b.com", code="111111")
    assert again.message == MSG_INVALID


async def test_older_code_stays_dead_after_newer_is_used(db: AsyncSession, sessions, settings, at):
    older = await _issue(db, code="111111", created_at=T0 - timedelta(minutes=2))
    await _issue(db, code="222222", created_at=T0 - timedelta(minutes=1))

    assert (await verify_otp(db, settings=settings, email="a@b.com", code="222222")).success is True

    outcome = await verify_otp(db, settings=settings, email="a@b.com", code="111111")
    assert outcome.success is False
    assert outcome.message == MSG_INVALID

    stored = await _load(sessions, older)
    assert stored.used is False
    assert stored.verified_at is None


async def test_unknown_email(db: AsyncSession, settings, at):
    await _issue(db)
    outcome = await verify_otp(db, settings=settings, email="c@d.com", code="123456")
    assert outcome.success is False
    assert outcome.message == MSG_INVALID


@pytest.mark.parametrize("email, code", [("", "123456"), ("a@b.com", ""), (None, "123456"), ("a@b.com", "  ")])
async def test_missing_input(db: AsyncSession, settings, email, code):
    with pytest.raises(InvalidArgument):
        await verify_otp(db, settings=settings, email=email, code=code)


async def test_mark_used_is_single_consumption(db: AsyncSession):
    otp_id = await _issue(db)
    now = T0 + timedelta(minutes=1)

    assert await otp_repo.mark_used(db, otp_id, verified_at=now, max_attempts=3) is True
    assert await otp_repo.mark_used(db, otp_id, verified_at=now, max_attempts=3) is False
    await db.commit()


async def test_concurrent_consumer_wins(db: AsyncSession, sessions, settings, at, monkeypatch):
    otp_id = await _issue(db)

    # another request consumes the record between our read and our write
    real_mark_used = otp_repo.mark_used

    async def _race(session, oid, **kwargs):
        async with sessions() as other:
            assert await real_mark_used(other, oid, **kwargs) is True
            await other.commit()
        return await real_mark_used(session, oid, **kwargs)

    monkeypatch.setattr(otp_repo, "mark_used", _race)

    outcome = await verify_otp(db, settings=settings, email="a@b.com", code="123456")
    assert outcome.success is False
    assert outcome.message == MSG_INVALID
    assert (await _load(sessions, otp_id)).used is True


async def test_store_fault_surfaces_as_internal(db: AsyncSession, settings, at, monkeypatch):
    async def _store_down(*args, **kwargs):
        raise RuntimeError("store down")

    monkeypatch.setattr(otp_repo, "get_latest", _store_down)

    with pytest.raises(Internal) as exc_info:
        await verify_otp(db, settings=settings, email="a@b.com", code="123456")
    assert exc_info.value.message == "Failed to verify OTP: store down"
