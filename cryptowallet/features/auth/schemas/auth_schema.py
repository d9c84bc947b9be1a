from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from cryptowallet.features.auth.models.otp_model import OtpPurpose


class CurrentUser(BaseModel):
    user_id: str

class TokenPayload(CurrentUser):
    exp: datetime

class TokenResponse(BaseModel):
    access_token: str
    token_type: str


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=70)
    email: str
    password: str = Field(min_length=8)
    phone: str | None = None

    @field_validator("email")
    def validate_email(cls, value):
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    def normalize_email(cls, value):
        return value.strip().lower()


class VerifyOtpRequest(BaseModel):
    user_id: str = Field(alias="userId")
    otp: str
    purpose: OtpPurpose

    model_config = {"populate_by_name": True}


class ResendOtpRequest(BaseModel):
    user_id: str = Field(alias="userId")
    purpose: OtpPurpose

    model_config = {"populate_by_name": True}
