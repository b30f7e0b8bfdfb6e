from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from onboarding.config.settings import Settings
from onboarding.db.dependencies import get_session
from onboarding.otp.repository import OtpStore, SqlOtpStore
from onboarding.otp.services import OtpIssuer, OtpVerifier


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_otp_store(session: AsyncSession = Depends(get_session)) -> OtpStore:
    return SqlOtpStore(session)


def get_otp_issuer(request: Request, store: OtpStore = Depends(get_otp_store),
                   settings: Settings = Depends(get_settings)) -> OtpIssuer:
    return OtpIssuer(
        store,
        settings,
        email_channel=request.app.state.email_channel,
        sms_channel=request.app.state.sms_channel,
    )


def get_otp_verifier(store: OtpStore = Depends(get_otp_store),
                     settings: Settings = Depends(get_settings)) -> OtpVerifier:
    return OtpVerifier(store, settings)
