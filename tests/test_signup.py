from datetime import timedelta
import pytest
from sqlalchemy import update
from onboarding.common.utils import now
from onboarding.schema.otp_code import OtpCode

EMAIL = "investor@example.com"
PHONE = "(555) 123-4567"


def signup_payload(**overrides):
    payload = {
        "fullName": "Jane Investor",
        "email": EMAIL,
        "phone": PHONE,
        "investmentAmount": 150000,
        "country": "United States",
    }
    payload.update(overrides)
    return payload


async def confirm(client, kind, destination):
    field = "email" if kind == "email" else "phone"
    r = await client.post(f"/api/send-{kind}-otp", json={field: destination})
    assert r.status_code == 200, r.text
    r = await client.post("/api/verify-otp", json={"type": kind, field: destination, "otp": r.json()["otp"]})
    assert r.status_code == 200, r.text


@pytest.mark.asyncio
async def test_signup_after_both_verifications_creates_pending_user(client):
    await confirm(client, "email", EMAIL)
    await confirm(client, "phone", PHONE)

    r = await client.post("/api/signup", json=signup_payload())

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Registration submitted successfully! Our team will contact you shortly."
    assert body["data"]["email"] == EMAIL
    assert body["data"]["fullName"] == "Jane Investor"
    assert isinstance(body["data"]["id"], int)


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["fullName", "email", "phone", "investmentAmount", "country"])
async def test_missing_fields_are_rejected(client, missing):
    payload = signup_payload()
    payload.pop(missing)

    r = await client.post("/api/signup", json=payload)

    assert r.status_code == 400
    assert r.json()["kind"] == "VALIDATION_ERROR"
    assert r.json()["error"] == "Missing required fields"


@pytest.mark.asyncio
async def test_client_verification_flags_are_not_trusted(client):
    await confirm(client, "email", EMAIL)

    r = await client.post("/api/signup", json=signup_payload(emailVerified=True, phoneVerified=True))

    assert r.status_code == 400
    assert r.json()["kind"] == "VERIFICATION_REQUIRED"
    assert r.json()["error"] == "Email and phone must be verified"


@pytest.mark.asyncio
async def test_retired_code_does_not_count_as_verified(client):
    # issuing twice flips the first record to verified=true without confirming it
    await client.post("/api/send-email-otp", json={"email": EMAIL})
    await client.post("/api/send-email-otp", json={"email": EMAIL})
    await confirm(client, "phone", PHONE)

    r = await client.post("/api/signup", json=signup_payload())

    assert r.status_code == 400
    assert r.json()["kind"] == "VERIFICATION_REQUIRED"


@pytest.mark.asyncio
async def test_stale_verification_is_not_accepted(app, client):
    await confirm(client, "email", EMAIL)
    await confirm(client, "phone", PHONE)

    async with app.state.session_maker() as session:
        await session.execute(
            update(OtpCode).where(OtpCode.verified_at.is_not(None)).values(verified_at=now() - timedelta(days=2)))
        await session.commit()

    r = await client.post("/api/signup", json=signup_payload())
    assert r.status_code == 400
    assert r.json()["kind"] == "VERIFICATION_REQUIRED"


@pytest.mark.asyncio
async def test_minimum_investment_is_enforced(client):
    await confirm(client, "email", EMAIL)
    await confirm(client, "phone", PHONE)

    r = await client.post("/api/signup", json=signup_payload(investmentAmount="99999.99"))

    assert r.status_code == 400
    assert r.json()["error"] == "Minimum investment amount is $100,000"


@pytest.mark.asyncio
async def test_duplicate_email_is_a_conflict(client):
    await confirm(client, "email", EMAIL)
    await confirm(client, "phone", PHONE)

    first = await client.post("/api/signup", json=signup_payload())
    second = await client.post("/api/signup", json=signup_payload(fullName="Someone Else"))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["kind"] == "USER_EXISTS"
    assert second.json()["error"] == "User with this email already exists"


@pytest.mark.asyncio
async def test_phone_is_matched_after_normalization(client):
    await confirm(client, "email", EMAIL)
    await confirm(client, "phone", "+1 555 123 4567")

    r = await client.post("/api/signup", json=signup_payload(phone="555.123.4567"))

    assert r.status_code == 201, r.text
