from datetime import timedelta
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel
from onboarding.db.connection import build_session_maker
from onboarding.otp.errors import InvalidOrExpiredError, StorageError
from onboarding.otp.repository import OtpFilter, OtpPatch, SqlOtpStore
from onboarding.otp.services import OtpIssuer, OtpVerifier
from onboarding.schema.otp_code import OtpCode, OtpType
from tests.fakes import FakeEmailChannel


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'otp.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield build_session_maker(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(session_maker):
    async with session_maker() as session:
        yield SqlOtpStore(session)


def _email_code(clock, email="a@b.com", code="123456", **values):
    issued_at = values.pop("created_at", clock())
    return OtpCode.for_destination(
        OtpType.EMAIL, email,
        otp_code=code,
        created_at=issued_at,
        expires_at=issued_at + timedelta(minutes=10),
        **values,
    )


@pytest.mark.asyncio
async def test_insert_and_query_newest_first(sql_store, clock):
    async with sql_store.atomic():
        await sql_store.insert(_email_code(clock, code="111111", verified=True))
    clock.advance(minutes=1)
    async with sql_store.atomic():
        await sql_store.insert(_email_code(clock, code="222222"))

    latest = await sql_store.query_one(OtpFilter(kind=OtpType.EMAIL, destination="a@b.com"))
    oldest = await sql_store.query_one(OtpFilter(kind=OtpType.EMAIL, destination="a@b.com"), newest_first=False)

    assert latest.otp_code == "222222"
    assert oldest.otp_code == "111111"
    assert latest.destination == "a@b.com"


@pytest.mark.asyncio
async def test_filters_by_code_state_and_expiry(sql_store, clock):
    async with sql_store.atomic():
        await sql_store.insert(_email_code(clock, code="123456"))

    base = dict(kind=OtpType.EMAIL, destination="a@b.com", verified=False)
    assert await sql_store.query_one(OtpFilter(code="123456", live_at=clock(), **base)) is not None
    assert await sql_store.query_one(OtpFilter(code="654321", live_at=clock(), **base)) is None
    assert await sql_store.query_one(OtpFilter(code="123456", live_at=clock() + timedelta(minutes=10), **base)) is None
    assert await sql_store.query_one(OtpFilter(kind=OtpType.PHONE, destination="a@b.com")) is None


@pytest.mark.asyncio
async def test_update_where_scopes_to_destination(sql_store, clock):
    async with sql_store.atomic():
        await sql_store.insert(_email_code(clock, email="a@b.com"))
        await sql_store.insert(_email_code(clock, email="c@d.com"))

    async with sql_store.atomic():
        count = await sql_store.update_where(
            OtpFilter(kind=OtpType.EMAIL, destination="a@b.com", verified=False), OtpPatch(verified=True))

    assert count == 1
    other = await sql_store.query_one(OtpFilter(kind=OtpType.EMAIL, destination="c@d.com"))
    assert other.verified is False


@pytest.mark.asyncio
async def test_attempts_increment_in_place(sql_store, clock):
    async with sql_store.atomic():
        record = await sql_store.insert(_email_code(clock))

    for _ in range(3):
        async with sql_store.atomic():
            await sql_store.update_where(
                OtpFilter(kind=OtpType.EMAIL, destination="a@b.com", record_id=record.id),
                OtpPatch(attempts_increment=1))

    fresh = await sql_store.query_one(OtpFilter(kind=OtpType.EMAIL, destination="a@b.com"))
    assert fresh.attempts == 3


@pytest.mark.asyncio
async def test_second_live_code_for_same_destination_is_rejected(sql_store, clock):
    async with sql_store.atomic():
        await sql_store.insert(_email_code(clock, code="111111"))

    with pytest.raises(StorageError):
        async with sql_store.atomic():
            await sql_store.insert(_email_code(clock, code="222222"))

    live = await sql_store.query_one(OtpFilter(kind=OtpType.EMAIL, destination="a@b.com", verified=False))
    assert live.otp_code == "111111"


@pytest.mark.asyncio
async def test_failed_block_rolls_back_invalidation(sql_store, clock):
    async with sql_store.atomic():
        await sql_store.insert(_email_code(clock, code="111111"))

    with pytest.raises(RuntimeError):
        async with sql_store.atomic():
            await sql_store.update_where(
                OtpFilter(kind=OtpType.EMAIL, destination="a@b.com", verified=False), OtpPatch(verified=True))
            raise RuntimeError("boom")

    live = await sql_store.query_one(OtpFilter(kind=OtpType.EMAIL, destination="a@b.com", verified=False))
    assert live is not None and live.otp_code == "111111"


@pytest.mark.asyncio
async def test_issue_and_verify_against_database(session_maker, settings, clock, sink, fixed_codes):
    async with session_maker() as session:
        store = SqlOtpStore(session)
        issuer = OtpIssuer(store, settings, email_channel=FakeEmailChannel(), clock=clock, on_noncritical=sink)
        verifier = OtpVerifier(store, settings, clock=clock, on_noncritical=sink)

        first = await issuer.issue(OtpType.EMAIL, "a@b.com")
        second = await issuer.issue(OtpType.EMAIL, "a@b.com")

        with pytest.raises(InvalidOrExpiredError):
            await verifier.verify(OtpType.EMAIL, "a@b.com", first.code)

        result = await verifier.verify(OtpType.EMAIL, "a@b.com", second.code)
        assert result.verified is True

    # state is durable across sessions
    async with session_maker() as session:
        store = SqlOtpStore(session)
        latest = await store.query_one(OtpFilter(kind=OtpType.EMAIL, destination="a@b.com"))
        assert latest.otp_code == second.code
        assert latest.verified is True
        assert latest.attempts == 1


@pytest.mark.asyncio
async def test_confirmed_since_matches_only_recent_confirmations(sql_store, clock):
    async with sql_store.atomic():
        await sql_store.insert(_email_code(clock, code="111111", verified=True))
        await sql_store.insert(_email_code(clock, email="c@d.com", verified=True, verified_at=clock()))

    recent = OtpFilter(kind=OtpType.EMAIL, destination="c@d.com", confirmed_since=clock() - timedelta(hours=1))
    retired = OtpFilter(kind=OtpType.EMAIL, destination="a@b.com", confirmed_since=clock() - timedelta(hours=1))
    future = OtpFilter(kind=OtpType.EMAIL, destination="c@d.com", confirmed_since=clock() + timedelta(hours=1))

    assert (await sql_store.query_one(recent)).otp_code == "123456"
    assert await sql_store.query_one(retired) is None
    assert await sql_store.query_one(future) is None
