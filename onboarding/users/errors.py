from fastapi import status
from onboarding.common.errors import AppError


class SignupValidationError(AppError):
    kind = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required fields"


class ContactNotVerifiedError(AppError):
    kind = "VERIFICATION_REQUIRED"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email and phone must be verified"


class DuplicateUserError(AppError):
    kind = "USER_EXISTS"
    status_code = status.HTTP_409_CONFLICT
    default_message = "User with this email already exists"


class UserStorageError(AppError):
    kind = "STORAGE_ERROR"
    default_message = "Failed to create user account"
