import asyncio
from typing import Optional, Protocol
import httpx
from twilio.base.exceptions import TwilioException
from twilio.rest import Client
from onboarding.config.settings import Settings
from onboarding.otp.constants import logger
from onboarding.otp.errors import DispatchError


class EmailChannel(Protocol):
    async def send(self, to_address: str, subject: str, html_body: str) -> None: ...


class SmsChannel(Protocol):
    async def send(self, to_number: str, body: str) -> str: ...


class SendGridEmailChannel:
    """Sends mail through the SendGrid v3 ``mail/send`` endpoint."""

    def __init__(self, api_key: str, from_email: str, from_name: str,
                 api_url: str = "https://api.sendgrid.com/v3/mail/send",
                 timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.api_url = api_url
        self.timeout = timeout
        self._client = client

    def _payload(self, to_address: str, subject: str, html_body: str) -> dict:
        return {
            "personalizations": [{"to": [{"email": to_address}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html_body}],
        }

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        return await client.post(
            self.api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        payload = self._payload(to_address, subject, html_body)
        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
        except httpx.HTTPError as exc:
            logger.error("otp.email.transport_error", extra={"error": str(exc)})
            raise DispatchError("Failed to send verification email. Please try again later.") from exc

        if response.is_error:
            logger.error("otp.email.provider_error", extra={
                "status": response.status_code,
                "reason": response.reason_phrase,
                "body": response.text[:500],
            })
            raise DispatchError("Failed to send verification email. Please try again later.")


class TwilioSmsChannel:
    """Twilio's client is blocking, so every call runs in a worker thread."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str, client: Optional[Client] = None):
        self.from_number = from_number
        self._client = client or Client(account_sid, auth_token)

    async def send(self, to_number: str, body: str) -> str:
        try:
            message = await asyncio.to_thread(
                self._client.messages.create,
                body=body,
                from_=self.from_number,
                to=to_number,
            )
        except (TwilioException, OSError) as exc:
            logger.error("otp.sms.provider_error", extra={"error": str(exc)})
            raise DispatchError("Failed to send SMS. Please check your phone number and try again.") from exc
        return message.sid


def build_email_channel(settings: Settings) -> Optional[SendGridEmailChannel]:
    if not settings.SENDGRID_API_KEY:
        logger.warning("otp.email.not_configured")
        return None
    logger.info("otp.email.configured", extra={"provider": "sendgrid"})
    return SendGridEmailChannel(
        api_key=settings.SENDGRID_API_KEY,
        from_email=settings.SENDGRID_FROM_EMAIL,
        from_name=settings.SENDGRID_FROM_NAME,
        api_url=settings.SENDGRID_API_URL,
        timeout=settings.DISPATCH_TIMEOUT_SECONDS,
    )


def build_sms_channel(settings: Settings) -> Optional[TwilioSmsChannel]:
    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_PHONE_NUMBER):
        logger.warning("otp.sms.not_configured")
        return None
    logger.info("otp.sms.configured", extra={"provider": "twilio"})
    return TwilioSmsChannel(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_PHONE_NUMBER,
    )
