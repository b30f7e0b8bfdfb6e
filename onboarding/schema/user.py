import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import Boolean, DateTime, Numeric, String
from sqlmodel import Column, Field, SQLModel
from onboarding.common.utils import now
from onboarding.otp.constants import MAX_EMAIL_LENGTH, MAX_PHONE_LENGTH

MAX_FULL_NAME_LENGTH = 200
MAX_COUNTRY_LENGTH = 100


class UserStatus(str, enum.Enum):
    PENDING = "pending"    # waiting for the operations team to review
    ACTIVE = "active"
    REJECTED = "rejected"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(sa_column=Column(String(MAX_FULL_NAME_LENGTH), nullable=False))
    email: str = Field(sa_column=Column(String(MAX_EMAIL_LENGTH), nullable=False, unique=True, index=True))
    phone: str = Field(sa_column=Column(String(MAX_PHONE_LENGTH), nullable=False))  # E.164 normalized
    investment_amount: Decimal = Field(sa_column=Column(Numeric(14, 2), nullable=False))
    country: str = Field(sa_column=Column(String(MAX_COUNTRY_LENGTH), nullable=False))

    email_verified: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    phone_verified: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    status: str = Field(default=UserStatus.PENDING.value,
        sa_column=Column(String(20), nullable=False, default=UserStatus.PENDING.value))

    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
