import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from sqlmodel import SQLModel
from onboarding.config.settings import DeploymentMode, Settings
from onboarding.main import create_app
from onboarding.otp import services as otp_services
from onboarding.otp.services import OtpIssuer, OtpVerifier
from tests.fakes import CollectingSink, FakeClock, FakeEmailChannel, FakeSmsChannel, InMemoryOtpStore


def make_settings(**overrides) -> Settings:
    values = {
        "ENV": DeploymentMode.DEV,
        "RATE_LIMIT_ENABLED": False,
        "SENDGRID_API_KEY": None,
        "TWILIO_ACCOUNT_SID": None,
        "TWILIO_AUTH_TOKEN": None,
        "TWILIO_PHONE_NUMBER": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def prod_settings():
    return make_settings(ENV=DeploymentMode.PROD)


@pytest.fixture
def store():
    return InMemoryOtpStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return CollectingSink()


@pytest.fixture
def email_channel():
    return FakeEmailChannel()


@pytest.fixture
def sms_channel():
    return FakeSmsChannel()


@pytest.fixture
def issuer(store, settings, email_channel, sms_channel, clock, sink):
    return OtpIssuer(store, settings, email_channel=email_channel, sms_channel=sms_channel,
                     clock=clock, on_noncritical=sink)


@pytest.fixture
def verifier(store, settings, clock, sink):
    return OtpVerifier(store, settings, clock=clock, on_noncritical=sink)


@pytest.fixture
def fixed_codes(monkeypatch):
    """Make the generator hand out a known sequence of codes."""
    codes = ["111111", "222222", "333333", "444444", "555555"]
    it = iter(codes)
    monkeypatch.setattr(otp_services, "generate_otp_code", lambda *a, **kw: next(it))
    return codes


async def client_for(app):
    async with app.state.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def app_factory(tmp_path):
    def _make(sms=True, **overrides):
        settings = make_settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", **overrides)
        return create_app(
            settings,
            email_channel=FakeEmailChannel(),
            sms_channel=FakeSmsChannel() if sms else None,
        )
    return _make


@pytest_asyncio.fixture
async def app(app_factory):
    app = app_factory()
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def client(app):
    async with await client_for(app) as ac:
        yield ac
