import enum
from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings


class DeploymentMode(str, enum.Enum):
    DEV = "dev"
    PROD = "prod"


class Settings(BaseSettings):

    ENV: DeploymentMode = DeploymentMode.DEV
    SERVICE_NAME: str = "onboarding"

    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/onboarding"
    FRONTEND_URL: str = "http://localhost:3000"

    # otp
    DEFAULT_COUNTRY_CODE: str = "+1"
    OTP_EXPIRY_MINUTES: int = 10
    MAX_OTP_ATTEMPTS: int = 5

    # sign-up
    MIN_INVESTMENT_AMOUNT: Decimal = Decimal("100000")
    SIGNUP_VERIFICATION_WINDOW_HOURS: int = 24

    # email (sendgrid)
    SENDGRID_API_KEY: Optional[str] = None
    SENDGRID_FROM_EMAIL: str = "noreply@baessolutions.com"
    SENDGRID_FROM_NAME: str = "BAES Solutions"
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"
    EMAIL_BRAND_NAME: str = "BAES Solutions"

    # sms (twilio)
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None

    DISPATCH_TIMEOUT_SECONDS: float = 10.0

    # rate limiting of otp sends
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True
    OTP_SEND_RATE_LIMIT: int = 5
    OTP_SEND_RATE_WINDOW: int = 600
    TRUST_FORWARDED_FOR: bool = False    # only behind a proxy that overwrites X-Forwarded-For

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENV == DeploymentMode.PROD

    @property
    def echo_codes(self) -> bool:
        """Generated codes are handed back to the caller only outside production."""
        return self.ENV == DeploymentMode.DEV

    @property
    def strict_email_dispatch(self) -> bool:
        return self.is_production


config_settings = Settings()
