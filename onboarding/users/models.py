from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from onboarding.schema.user import MAX_COUNTRY_LENGTH, MAX_FULL_NAME_LENGTH


class SignupIn(BaseModel):
    # the web front end posts camelCase keys
    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(None, alias="fullName", max_length=MAX_FULL_NAME_LENGTH, examples=["Jane Investor"])
    email: Optional[str] = Field(None, examples=["investor@example.com"])
    phone: Optional[str] = Field(None, examples=["+1 (555) 123-4567"])
    investment_amount: Optional[Decimal] = Field(None, alias="investmentAmount", max_digits=14, decimal_places=2,
                                                 examples=["150000"])
    country: Optional[str] = Field(None, max_length=MAX_COUNTRY_LENGTH, examples=["United States"])
