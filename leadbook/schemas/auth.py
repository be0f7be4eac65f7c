from typing import Optional

from pydantic import EmailStr, Field, field_validator

from leadbook.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str
    attestation_token: Optional[str] = None


class VerifyOtpRequest(CamelModel):
    email: EmailStr
    otp: str

    @field_validator("otp", mode="before")
    @classmethod
    def otp_as_text(cls, value):
        return str(value) if isinstance(value, int) else value


class EmailRequest(CamelModel):
    email: EmailStr


class ForgotPasswordRequest(CamelModel):
    email: EmailStr
    attestation_token: Optional[str] = None


class ResetPasswordRequest(VerifyOtpRequest):
    new_password: str
    confirm_password: str
    attestation_token: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UpdatePasswordRequest(CamelModel):
    current_password: str
    new_password: str


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = None
    profile_photo: Optional[str] = None


class AccountResponse(CamelModel):
    id: int
    name: Optional[str] = None
    email: EmailStr
    profile_photo: Optional[str] = None


class ProfileResponse(CamelModel):
    message: Optional[str] = None
    user: AccountResponse


class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: AccountResponse
