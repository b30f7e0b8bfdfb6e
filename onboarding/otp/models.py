from typing import Optional
from pydantic import BaseModel, Field
from onboarding.schema.otp_code import OtpType


class SendEmailOtpIn(BaseModel):
    email: Optional[str] = Field(None, examples=["investor@example.com"])


class SendPhoneOtpIn(BaseModel):
    phone: Optional[str] = Field(None, examples=["+1 (555) 123-4567"])


class VerifyOtpIn(BaseModel):
    type: Optional[OtpType] = Field(None, examples=["email"])
    otp: Optional[str] = Field(None, examples=["123456"])
    email: Optional[str] = None
    phone: Optional[str] = None
