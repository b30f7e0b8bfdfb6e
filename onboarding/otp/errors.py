from fastapi import status
from onboarding.common.errors import AppError


class OtpError(AppError):
    """Base for every failure the otp core reports to its caller."""

    kind = "OTP_ERROR"
    default_message = "Verification service error"


class OtpValidationError(OtpError):
    kind = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConfigurationError(OtpError):
    kind = "CONFIGURATION_ERROR"
    default_message = "Service not configured. Please contact support."


class StorageError(OtpError):
    kind = "STORAGE_ERROR"
    default_message = "Failed to process verification code"


class DispatchError(OtpError):
    kind = "DISPATCH_ERROR"
    default_message = "Failed to send verification code"


class InvalidOrExpiredError(OtpError):
    kind = "INVALID_OR_EXPIRED"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired verification code"


class MaxAttemptsExceededError(OtpError):
    kind = "MAX_ATTEMPTS_EXCEEDED"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Maximum verification attempts exceeded. Please request a new code."
