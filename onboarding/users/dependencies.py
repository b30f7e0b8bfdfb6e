from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from onboarding.config.settings import Settings
from onboarding.db.dependencies import get_session
from onboarding.otp.dependencies import get_settings
from onboarding.otp.repository import SqlOtpStore
from onboarding.users.services import SignupService


def get_signup_service(session: AsyncSession = Depends(get_session),
                       settings: Settings = Depends(get_settings)) -> SignupService:
    return SignupService(session, SqlOtpStore(session), settings)
