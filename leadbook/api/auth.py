from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from leadbook.core.database import get_db
from leadbook.core.security import get_current_account
from leadbook.models.account import Account
from leadbook.schemas.auth import (
    AccountResponse,
    EmailRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    VerifyOtpRequest,
)
from leadbook.schemas.base import MessageResponse
from leadbook.services.auth_service import AuthService
from leadbook.services.email_service import EmailService, get_email_service
from leadbook.services.recaptcha_service import RecaptchaVerifier, get_recaptcha_verifier

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    recaptcha: RecaptchaVerifier = Depends(get_recaptcha_verifier),
) -> AuthService:
    return AuthService(db, email_service=email_service, recaptcha=recaptcha)


# ---------------------------------------------------------
# REGISTER / VERIFY
# ---------------------------------------------------------
@router.post("/register", response_model=MessageResponse)
def register(payload: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    service.register(payload.name, payload.email, payload.password, payload.attestation_token)
    return {"message": "OTP sent to email"}


@router.post("/verify-otp", response_model=MessageResponse)
def verify_otp(payload: VerifyOtpRequest, service: AuthService = Depends(get_auth_service)):
    service.verify_otp(payload.email, payload.otp)
    return {"message": "Verified successfully"}


@router.post("/resend-verification-otp", response_model=MessageResponse)
def resend_verification_otp(payload: EmailRequest, service: AuthService = Depends(get_auth_service)):
    service.resend_verification_otp(payload.email)
    return {"message": "OTP sent to email"}


# ---------------------------------------------------------
# PASSWORD RESET
# ---------------------------------------------------------
@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    service.forgot_password(payload.email, payload.attestation_token)
    return {"message": "Password reset OTP sent to email"}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    service.reset_password(
        payload.email,
        payload.otp,
        payload.new_password,
        payload.confirm_password,
        payload.attestation_token,
    )
    return {"message": "Password reset successfully"}


# ---------------------------------------------------------
# LOGIN
# ---------------------------------------------------------
@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    token, account = service.login(payload.email, payload.password)
    return {"token": token, "token_type": "bearer", "user": account}


# ---------------------------------------------------------
# PROFILE
# ---------------------------------------------------------
@router.get("/profile", response_model=ProfileResponse)
def get_profile(account: Account = Depends(get_current_account)):
    return {"user": account}


@router.put("/update-password", response_model=MessageResponse)
def update_password(
    payload: UpdatePasswordRequest,
    account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    service.update_password(account, payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}


@router.put("/update-profile", response_model=ProfileResponse)
def update_profile(
    payload: UpdateProfileRequest,
    account: Account = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    account = service.update_profile(account, payload.name, payload.profile_photo)
    return {"message": "Profile updated successfully", "user": AccountResponse.model_validate(account)}
