import pytest
from onboarding.otp import utils as otp_utils
from onboarding.otp.errors import OtpValidationError
from onboarding.otp.utils import (
    generate_otp_code,
    is_valid_otp_format,
    normalize_phone,
    render_email_body,
    validate_email_address,
)


def test_generated_codes_are_six_ascii_digits():
    for _ in range(200):
        code = generate_otp_code()
        assert len(code) == 6
        assert is_valid_otp_format(code)


def test_generated_codes_keep_leading_zeros(monkeypatch):
    monkeypatch.setattr(otp_utils.secrets, "randbelow", lambda n: 42)
    assert generate_otp_code() == "000042"


def test_generator_draws_from_full_range(monkeypatch):
    seen = []
    monkeypatch.setattr(otp_utils.secrets, "randbelow", lambda n: seen.append(n) or 0)
    generate_otp_code()
    assert seen == [1_000_000]


@pytest.mark.parametrize("raw, expected", [
    ("(555) 123-4567", "+15551234567"),
    ("+44 20 7946 0958", "+442079460958"),
    ("555.123.4567", "+15551234567"),
    ("+1-555-123-4567", "+15551234567"),
    ("12", "+112"),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_normalize_phone_uses_configured_country_code():
    assert normalize_phone("20 7946 0958", default_country_code="+44") == "+442079460958"


@pytest.mark.parametrize("raw", ["", None, "call me", "+"])
def test_normalize_phone_rejects_input_without_digits(raw):
    with pytest.raises(OtpValidationError):
        normalize_phone(raw)


@pytest.mark.parametrize("email", ["a@b.com", "first.last@example.co.uk", "x+y@d.io"])
def test_valid_emails_pass_unchanged(email):
    assert validate_email_address(email) == email


@pytest.mark.parametrize("email", ["not-an-email", "a@b", "@b.com", "a b@c.com", "a@b@c.com", "a@b.com\n", "\na@b.com", "", None])
def test_invalid_emails_rejected(email):
    with pytest.raises(OtpValidationError):
        validate_email_address(email)


def test_email_body_mentions_code_and_expiry():
    body = render_email_body("004211", 10, "BAES Solutions")
    assert "004211" in body
    assert "expire in 10 minutes" in body
    assert "BAES Solutions" in body


def test_email_longer_than_storage_column_is_rejected():
    local = "a" * 64
    domain = ("d" * 60 + ".") * 5 + "com"
    email = f"{local}@{domain}"
    assert len(email) > 320
    with pytest.raises(OtpValidationError, match="Invalid email format"):
        validate_email_address(email)


def test_phone_longer_than_storage_column_is_rejected():
    assert len(normalize_phone("1" * 30)) == 32
    with pytest.raises(OtpValidationError, match="Invalid phone number"):
        normalize_phone("1" * 40)
