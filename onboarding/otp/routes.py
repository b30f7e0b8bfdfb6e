from fastapi import APIRouter, Depends
from onboarding.otp.constants import logger
from onboarding.otp.dependencies import get_otp_issuer, get_otp_verifier
from onboarding.otp.errors import OtpValidationError
from onboarding.otp.models import SendEmailOtpIn, SendPhoneOtpIn, VerifyOtpIn
from onboarding.otp.services import IssueResult, OtpIssuer, OtpVerifier
from onboarding.common.utils import success_response
from onboarding.rate_limiting.dependencies import rate_limit_dependency
from onboarding.schema.otp_code import OtpType

otp_router = APIRouter()


def _issue_response(result: IssueResult):
    resp = {"message": result.message}
    if result.code is not None:
        resp["otp"] = result.code
    return success_response(resp, 200)


@otp_router.post("/send-email-otp", dependencies=[Depends(rate_limit_dependency("send-email-otp"))])
async def send_email_otp(payload: SendEmailOtpIn, issuer: OtpIssuer = Depends(get_otp_issuer)):

    logger.info("otp.send.attempt", extra={"kind": OtpType.EMAIL.value})
    result = await issuer.issue(OtpType.EMAIL, payload.email)
    return _issue_response(result)


@otp_router.post("/send-phone-otp", dependencies=[Depends(rate_limit_dependency("send-phone-otp"))])
async def send_phone_otp(payload: SendPhoneOtpIn, issuer: OtpIssuer = Depends(get_otp_issuer)):

    logger.info("otp.send.attempt", extra={"kind": OtpType.PHONE.value})
    result = await issuer.issue(OtpType.PHONE, payload.phone)
    return _issue_response(result)


@otp_router.post("/verify-otp")
async def verify_otp(payload: VerifyOtpIn, verifier: OtpVerifier = Depends(get_otp_verifier)):

    if not payload.otp or payload.type is None:
        raise OtpValidationError("OTP and type are required")

    if payload.type == OtpType.EMAIL:
        if not payload.email:
            raise OtpValidationError("Email is required for email verification")
        destination = payload.email
    else:
        if not payload.phone:
            raise OtpValidationError("Phone is required for phone verification")
        destination = payload.phone

    logger.info("otp.verify.attempt", extra={"kind": payload.type.value})
    result = await verifier.verify(payload.type, destination, payload.otp)
    return success_response({"message": result.message, "verified": result.verified}, 200)
