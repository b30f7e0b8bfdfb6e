from onboarding.common.logging_setup import get_logger

logger = get_logger("onboarding.otp")

OTP_CODE_LENGTH = 6

# column widths of otp_codes.email / otp_codes.phone
MAX_EMAIL_LENGTH = 320
MAX_PHONE_LENGTH = 32

EMAIL_SUBJECT_TEMPLATE = "{brand} - Email Verification Code"

SMS_BODY_TEMPLATE = "Your {brand} verification code is: {code}. This code expires in {minutes} minutes."

EMAIL_OTP_SENT_MESSAGE = "Verification code sent to your email"
PHONE_OTP_SENT_MESSAGE = "Verification code sent to your phone"
