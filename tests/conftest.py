import os
import tempfile
import uuid
from typing import List, Optional, Tuple

# Settings are read on first import; point them at a throwaway sqlite file before that.
_DB_PATH = os.path.join(tempfile.gettempdir(), f"findme_otp_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["TWILIO_FROM_NUMBER"] = ""

import pytest
import pytest_asyncio
import sqlalchemy as sa

from findme_otp.config import get_settings
from findme_otp.db import build_engine, build_sessionmaker
from findme_otp.models import Base
from findme_otp.services.sms import SentMessage, SmsDeliveryError


@pytest.fixture(autouse=True)
def _schema():
    # fresh tables per test; a sync engine keeps this independent of any event loop
    eng = sa.create_engine(f"sqlite:///{_DB_PATH}")
    Base.metadata.drop_all(eng)
    Base.metadata.create_all(eng)
    eng.dispose()
    yield


@pytest.fixture
def sync_engine():
    eng = sa.create_engine(f"sqlite:///{_DB_PATH}")
    yield eng
    eng.dispose()


@pytest_asyncio.fixture
async def sessions():
    engine = build_engine(get_settings())
    yield build_sessionmaker(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(sessions):
    async with sessions() as s:
        yield s


@pytest.fixture
def settings():
    return get_settings()


class FakeSMS:
    """Stands in for TwilioSMSService; records what would have been sent."""

    enabled = True

    def __init__(self, fail: Optional[str] = None) -> None:
        self.fail = fail
        self.sent: List[Tuple[str, str]] = []

    async def send_sms(self, *, to: str, body: str) -> SentMessage:
        self.sent.append((to, body))
        if self.fail:
            raise SmsDeliveryError(self.fail)
        return SentMessage(sid=f"SM{uuid.uuid4().hex}", status="queued")


@pytest.fixture
def fake_sms():
    return FakeSMS()


@pytest.fixture
def failing_sms():
    return FakeSMS(fail="Unable to create record: The 'To' number is not a valid phone number.")
