import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, text
from sqlmodel import Column, Field, SQLModel
from onboarding.common.utils import now
from onboarding.otp.constants import MAX_EMAIL_LENGTH, MAX_PHONE_LENGTH


class OtpType(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"


class OtpCode(SQLModel, table=True):
    """One issued code. ``verified`` doubles as the "retired" flag when a newer code replaces it."""

    __tablename__ = "otp_codes"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: OtpType = Field(sa_column=Column(String(10), nullable=False))
    email: Optional[str] = Field(default=None, sa_column=Column(String(MAX_EMAIL_LENGTH), nullable=True, index=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(MAX_PHONE_LENGTH), nullable=True, index=True))  # E.164 normalized
    otp_code: str = Field(sa_column=Column(String(6), nullable=False))

    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))

    verified: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    # set only when a user confirms the code, retired codes keep None
    verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    attempts: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))

    __table_args__ = (
        CheckConstraint(
            "(type = 'email' AND email IS NOT NULL AND phone IS NULL) OR "
            "(type = 'phone' AND phone IS NOT NULL AND email IS NULL)",
            name="ck_otp_codes_destination_matches_type",
        ),
        CheckConstraint("attempts >= 0", name="ck_otp_codes_attempts_non_negative"),
        # at most one unverified code per destination
        Index("uq_otp_codes_live_email", "email", unique=True,
              postgresql_where=text("type = 'email' AND verified = false"),
              sqlite_where=text("type = 'email' AND verified = 0")),
        Index("uq_otp_codes_live_phone", "phone", unique=True,
              postgresql_where=text("type = 'phone' AND verified = false"),
              sqlite_where=text("type = 'phone' AND verified = 0")),
    )

    @property
    def destination(self) -> str:
        if self.type == OtpType.EMAIL:
            return self.email
        return self.phone

    @classmethod
    def for_destination(cls, kind: OtpType, destination: str, **values) -> "OtpCode":
        if kind == OtpType.EMAIL:
            return cls(type=OtpType.EMAIL.value, email=destination, phone=None, **values)
        return cls(type=OtpType.PHONE.value, phone=destination, email=None, **values)
