from datetime import datetime, timedelta
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from onboarding.common.logging_setup import mask_destination
from onboarding.common.utils import now
from onboarding.config.settings import Settings
from onboarding.otp.repository import OtpFilter, OtpStore
from onboarding.otp.utils import normalize_phone, validate_email_address
from onboarding.schema.otp_code import OtpType
from onboarding.schema.user import User, UserStatus
from onboarding.users.constants import logger
from onboarding.users.errors import ContactNotVerifiedError, DuplicateUserError, SignupValidationError
from onboarding.users.models import SignupIn
from onboarding.users.repository import create_pending_user, user_id_by_email


class SignupService:
    """Validates a registration and stores it as a pending user.

    Email and phone count as verified only when an otp record for them was
    confirmed within ``SIGNUP_VERIFICATION_WINDOW_HOURS``.
    """

    def __init__(self, session: AsyncSession, otp_store: OtpStore, settings: Settings,
                 clock: Callable[[], datetime] = now):
        self.session = session
        self.otp_store = otp_store
        self.settings = settings
        self.clock = clock

    async def _contact_confirmed(self, kind: OtpType, destination: str) -> bool:
        since = self.clock() - timedelta(hours=self.settings.SIGNUP_VERIFICATION_WINDOW_HOURS)
        record = await self.otp_store.query_one(OtpFilter(kind=kind, destination=destination, confirmed_since=since))
        return record is not None

    async def register(self, payload: SignupIn) -> User:
        required = (payload.full_name, payload.email, payload.phone, payload.investment_amount, payload.country)
        if not all(required) or not payload.full_name.strip() or not payload.country.strip():
            raise SignupValidationError()

        email = validate_email_address(payload.email)
        phone = normalize_phone(payload.phone, self.settings.DEFAULT_COUNTRY_CODE)

        email_ok = await self._contact_confirmed(OtpType.EMAIL, email)
        phone_ok = await self._contact_confirmed(OtpType.PHONE, phone)
        if not (email_ok and phone_ok):
            logger.info("users.signup.unverified", extra={
                "email": mask_destination(email), "email_verified": email_ok, "phone_verified": phone_ok,
            })
            raise ContactNotVerifiedError()

        minimum = self.settings.MIN_INVESTMENT_AMOUNT
        if payload.investment_amount < minimum:
            raise SignupValidationError(f"Minimum investment amount is ${minimum:,.0f}")

        if await user_id_by_email(self.session, email) is not None:
            raise DuplicateUserError()

        user = User(
            full_name=payload.full_name.strip(),
            email=email,
            phone=phone,
            investment_amount=payload.investment_amount,
            country=payload.country.strip(),
            email_verified=True,
            phone_verified=True,
            status=UserStatus.PENDING.value,
            created_at=self.clock(),
        )
        user = await create_pending_user(self.session, user)
        logger.info("users.signup.created", extra={"user_id": user.id, "email": mask_destination(email)})
        return user
