from onboarding.common.logging_setup import get_logger

logger = get_logger("onboarding.users")

SIGNUP_SUCCESS_MESSAGE = "Registration submitted successfully! Our team will contact you shortly."
