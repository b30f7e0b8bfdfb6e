from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
from onboarding.common.logging_setup import mask_destination
from onboarding.common.utils import now
from onboarding.config.settings import Settings
from onboarding.otp.channels import EmailChannel, SmsChannel
from onboarding.otp.constants import (
    EMAIL_OTP_SENT_MESSAGE,
    EMAIL_SUBJECT_TEMPLATE,
    PHONE_OTP_SENT_MESSAGE,
    SMS_BODY_TEMPLATE,
    logger,
)
from onboarding.otp.errors import (
    ConfigurationError,
    DispatchError,
    InvalidOrExpiredError,
    MaxAttemptsExceededError,
    OtpValidationError,
    StorageError,
)
from onboarding.otp.repository import OtpFilter, OtpPatch, OtpStore
from onboarding.otp.utils import (
    generate_otp_code,
    is_valid_otp_format,
    normalize_phone,
    render_email_body,
    validate_email_address,
)
from onboarding.schema.otp_code import OtpCode, OtpType

# (event, exception, context) -> None
NonCriticalErrorSink = Callable[[str, BaseException, Dict[str, Any]], None]


def log_noncritical(event: str, exc: BaseException, context: Dict[str, Any]) -> None:
    """Default sink: failures that must not change the outcome are only logged."""
    logger.warning(event, extra={**context, "error": str(exc), "error_kind": type(exc).__name__})


def coerce_kind(kind) -> OtpType:
    try:
        return OtpType(kind)
    except ValueError:
        raise OtpValidationError("Type must be either 'email' or 'phone'")


def normalize_destination(kind: OtpType, destination, settings: Settings) -> str:
    if kind == OtpType.EMAIL:
        return validate_email_address(destination)
    if kind == OtpType.PHONE:
        return normalize_phone(destination, settings.DEFAULT_COUNTRY_CODE)
    raise OtpValidationError("Unsupported destination type")


@dataclass(frozen=True)
class IssueResult:
    issued: bool
    message: str
    expires_at: datetime
    code: Optional[str] = None


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    message: str


class OtpIssuer:

    def __init__(self, store: OtpStore, settings: Settings,
                 email_channel: Optional[EmailChannel] = None,
                 sms_channel: Optional[SmsChannel] = None,
                 clock: Callable[[], datetime] = now,
                 on_noncritical: NonCriticalErrorSink = log_noncritical):
        self.store = store
        self.settings = settings
        self.email_channel = email_channel
        self.sms_channel = sms_channel
        self.clock = clock
        self.on_noncritical = on_noncritical

    def _require_channel(self, kind: OtpType) -> None:
        if kind == OtpType.PHONE:
            if self.sms_channel is None:
                logger.error("otp.issue.sms_not_configured")
                raise ConfigurationError("SMS service not configured. Please contact support.")
        elif kind == OtpType.EMAIL:
            if self.email_channel is None and self.settings.strict_email_dispatch:
                logger.error("otp.issue.email_not_configured")
                raise ConfigurationError("Email service not configured")

    async def _store_new_code(self, kind: OtpType, destination: str, code: str, issued_at: datetime) -> OtpCode:
        expires_at = issued_at + timedelta(minutes=self.settings.OTP_EXPIRY_MINUTES)
        record = OtpCode.for_destination(
            kind, destination,
            otp_code=code,
            created_at=issued_at,
            expires_at=expires_at,
            verified=False,
            attempts=0,
        )
        async with self.store.atomic():
            retired = await self.store.update_where(
                OtpFilter(kind=kind, destination=destination, verified=False),
                OtpPatch(verified=True),
            )
            record = await self.store.insert(record)
        logger.info("otp.issue.stored", extra={
            "kind": kind.value, "destination": mask_destination(destination), "retired": retired,
        })
        return record

    async def _send_email(self, destination: str, code: str) -> None:
        context = {"kind": OtpType.EMAIL.value, "destination": mask_destination(destination)}
        if self.email_channel is None:
            # strict mode already refused in _require_channel
            self.on_noncritical("otp.issue.email_skipped", ConfigurationError("Email service not configured"), context)
            return

        brand = self.settings.EMAIL_BRAND_NAME
        try:
            await self.email_channel.send(
                destination,
                EMAIL_SUBJECT_TEMPLATE.format(brand=brand),
                render_email_body(code, self.settings.OTP_EXPIRY_MINUTES, brand),
            )
        except DispatchError as exc:
            if self.settings.strict_email_dispatch:
                raise
            self.on_noncritical("otp.issue.email_dispatch_failed", exc, context)
            return
        logger.info("otp.issue.email_sent", extra=context)

    async def _send_sms(self, destination: str, code: str) -> None:
        body = SMS_BODY_TEMPLATE.format(
            brand=self.settings.EMAIL_BRAND_NAME, code=code, minutes=self.settings.OTP_EXPIRY_MINUTES,
        )
        message_id = await self.sms_channel.send(destination, body)
        logger.info("otp.issue.sms_sent", extra={
            "kind": OtpType.PHONE.value, "destination": mask_destination(destination), "message_id": message_id,
        })

    async def issue(self, kind, destination) -> IssueResult:
        kind = coerce_kind(kind)
        destination = normalize_destination(kind, destination, self.settings)
        self._require_channel(kind)

        code = generate_otp_code()
        record = await self._store_new_code(kind, destination, code, self.clock())

        if kind == OtpType.EMAIL:
            await self._send_email(destination, code)
            message = EMAIL_OTP_SENT_MESSAGE
        else:
            await self._send_sms(destination, code)
            message = PHONE_OTP_SENT_MESSAGE

        return IssueResult(
            issued=True,
            message=message,
            expires_at=record.expires_at,
            code=code if self.settings.echo_codes else None,
        )


class OtpVerifier:

    def __init__(self, store: OtpStore, settings: Settings,
                 clock: Callable[[], datetime] = now,
                 on_noncritical: NonCriticalErrorSink = log_noncritical):
        self.store = store
        self.settings = settings
        self.clock = clock
        self.on_noncritical = on_noncritical

    async def _record_failed_attempt(self, kind: OtpType, destination: str) -> None:
        try:
            async with self.store.atomic():
                latest = await self.store.query_one(OtpFilter(kind=kind, destination=destination, verified=False))
                if latest is None:
                    return
                await self.store.update_where(
                    OtpFilter(kind=kind, destination=destination, record_id=latest.id, verified=False),
                    OtpPatch(attempts_increment=1),
                )
        except StorageError as exc:
            self.on_noncritical("otp.verify.attempt_not_recorded", exc, {
                "kind": kind.value, "destination": mask_destination(destination),
            })

    async def verify(self, kind, destination, submitted_code) -> VerificationResult:
        if not is_valid_otp_format(submitted_code):
            raise OtpValidationError("Invalid verification code format")
        kind = coerce_kind(kind)
        destination = normalize_destination(kind, destination, self.settings)
        masked = mask_destination(destination)

        record = await self.store.query_one(OtpFilter(
            kind=kind,
            destination=destination,
            code=submitted_code,
            verified=False,
            live_at=self.clock(),
        ))

        if record is None:
            await self._record_failed_attempt(kind, destination)
            logger.warning("otp.verify.failed", extra={"kind": kind.value, "destination": masked, "reason": "no_live_match"})
            raise InvalidOrExpiredError()

        if record.attempts >= self.settings.MAX_OTP_ATTEMPTS:
            logger.warning("otp.verify.failed", extra={
                "kind": kind.value, "destination": masked, "reason": "max_attempts", "attempts": record.attempts,
            })
            raise MaxAttemptsExceededError()

        async with self.store.atomic():
            updated = await self.store.update_where(
                OtpFilter(kind=kind, destination=destination, record_id=record.id, verified=False),
                OtpPatch(verified=True, verified_at=self.clock()),
            )
        if not updated:
            # retired or verified concurrently
            logger.warning("otp.verify.failed", extra={"kind": kind.value, "destination": masked, "reason": "lost_race"})
            raise InvalidOrExpiredError()

        logger.info("otp.verify.success", extra={"kind": kind.value, "destination": masked})
        label = "Email" if kind == OtpType.EMAIL else "Phone"
        return VerificationResult(verified=True, message=f"{label} verified successfully")
