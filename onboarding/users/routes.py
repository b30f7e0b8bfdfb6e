from fastapi import APIRouter, Depends, status
from onboarding.common.utils import success_response
from onboarding.users.constants import SIGNUP_SUCCESS_MESSAGE, logger
from onboarding.users.dependencies import get_signup_service
from onboarding.users.models import SignupIn
from onboarding.users.services import SignupService

user_router = APIRouter()


@user_router.post("/signup")
async def signup(payload: SignupIn, service: SignupService = Depends(get_signup_service)):

    logger.info("users.signup.attempt")
    user = await service.register(payload)
    return success_response({
        "message": SIGNUP_SUCCESS_MESSAGE,
        "data": {"id": user.id, "email": user.email, "fullName": user.full_name},
    }, status.HTTP_201_CREATED)
