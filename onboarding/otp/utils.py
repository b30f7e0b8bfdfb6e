import re
import secrets
from onboarding.otp.constants import MAX_EMAIL_LENGTH, MAX_PHONE_LENGTH, OTP_CODE_LENGTH
from onboarding.otp.errors import OtpValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_PHONE_CHARS = re.compile(r"[^0-9+]")


def generate_otp_code(length: int = OTP_CODE_LENGTH) -> str:
    """Uniform over the whole 10**length space, zero padded."""
    return str(secrets.randbelow(10 ** length)).zfill(length)


def is_valid_otp_format(code, length: int = OTP_CODE_LENGTH) -> bool:
    return (
        isinstance(code, str)
        and len(code) == length
        and all(c in "0123456789" for c in code)
    )


def validate_email_address(email) -> str:
    if not email or not isinstance(email, str):
        raise OtpValidationError("Email is required")
    if len(email) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.fullmatch(email):
        raise OtpValidationError("Invalid email format")
    return email


def normalize_phone(phone, default_country_code: str = "+1") -> str:
    """
    Canonicalize a phone number to ``+<digits>``.

    Everything except ASCII digits and a leading ``+`` is dropped; numbers
    without a leading ``+`` get ``default_country_code`` prepended. This is not
    a plausibility check, only the stored width is enforced.
    """
    if not phone or not isinstance(phone, str):
        raise OtpValidationError("Phone number is required")

    cleaned = _NON_PHONE_CHARS.sub("", phone)
    has_plus = cleaned.startswith("+")
    digits = cleaned.replace("+", "")
    if not digits:
        raise OtpValidationError("Invalid phone number")

    normalized = "+" + digits if has_plus else default_country_code + digits
    if len(normalized) > MAX_PHONE_LENGTH:
        raise OtpValidationError("Invalid phone number")
    return normalized


def render_email_body(code: str, expiry_minutes: int, brand: str) -> str:
    return f"""
    <html>
      <body style="font-family: Arial, sans-serif; padding: 20px; background-color: #f5f5f5;">
        <div style="max-width: 600px; margin: 0 auto; background-color: white; padding: 30px; border-radius: 8px;">
          <h2 style="color: #333; margin-bottom: 20px;">{brand} - Email Verification</h2>
          <p style="color: #666; font-size: 16px; margin-bottom: 20px;">Your verification code is:</p>
          <div style="background-color: #f0f7ff; padding: 20px; border-radius: 6px; text-align: center; margin: 20px 0;">
            <h1 style="color: #0066cc; font-size: 36px; letter-spacing: 8px; margin: 0; font-weight: bold;">{code}</h1>
          </div>
          <p style="color: #666; font-size: 14px; margin-bottom: 10px;">This code will expire in {expiry_minutes} minutes.</p>
          <p style="color: #999; font-size: 12px; margin-top: 30px;">If you didn't request this code, please ignore this email.</p>
          <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">
          <p style="color: #999; font-size: 12px; margin: 0;">{brand}</p>
        </div>
      </body>
    </html>
    """
