import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from leadbook.core.config import settings
from leadbook.core.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TooManyAttemptsError,
    UpstreamServiceError,
    ValidationError,
)
from leadbook.core.security import create_access_token, get_password_hash, verify_password
from leadbook.models.account import Account
from leadbook.services.email_service import EmailService
from leadbook.services.email_templates import reset_password_otp_email, verification_otp_email
from leadbook.services.recaptcha_service import RecaptchaVerifier

logger = logging.getLogger(__name__)

PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long and contain an uppercase letter, "
    "a lowercase letter and a symbol"
)


def validate_password_strength(password: str) -> None:
    password = password or ""
    if (
        len(password) < 8
        or not re.search(r"[A-Z]", password)
        or not re.search(r"[a-z]", password)
        or not re.search(r"[^A-Za-z0-9]", password)
    ):
        raise ValidationError(PASSWORD_POLICY_MESSAGE)


def generate_otp() -> str:
    """Six digits, uniform over 100000-999999."""
    return str(secrets.randbelow(900000) + 100000)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:
    """Registration, OTP verification, login and password flows.

    Account states: unregistered -> pending verification (OTP issued) ->
    verified. A verified account can have a reset OTP outstanding without
    losing its verified flag.
    """

    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
        recaptcha: Optional[RecaptchaVerifier] = None,
        config=settings,
    ):
        self.db = db
        self.email_service = email_service or EmailService(config)
        self.recaptcha = recaptcha or RecaptchaVerifier(secret_key=config.RECAPTCHA_SECRET_KEY)
        self.config = config

    # ---------------------------------------------------------
    # HELPERS
    # ---------------------------------------------------------
    def _get_account(self, email: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.email == _normalize_email(email)).first()

    def _require_account(self, email: str) -> Account:
        account = self._get_account(email)
        if not account:
            raise NotFoundError("User not found")
        return account

    def _issue_otp(self, account: Account, subject: str, render) -> None:
        """Stage a fresh OTP, email it, and commit only once the email went out."""
        otp = generate_otp()
        account.set_otp(otp, datetime.utcnow() + timedelta(minutes=self.config.OTP_EXPIRE_MINUTES))
        self.db.flush()

        success, error = self.email_service.send_email(
            account.email, subject, render(otp, self.config.OTP_EXPIRE_MINUTES)
        )
        if not success:
            self.db.rollback()
            logger.error(f"❌ OTP email to {account.email} failed: {error}")
            raise UpstreamServiceError("Failed to send OTP email. Please try again later.")

        self.db.commit()
        logger.info(f"📨 OTP issued to {account.email}")

    def _check_otp(self, account: Account, otp: str) -> None:
        """Raise unless ``otp`` is the account's current, unexpired code.

        A wrong code costs one attempt. An expired code that matches does not.
        """
        if account.otp_attempts >= self.config.OTP_MAX_ATTEMPTS:
            raise TooManyAttemptsError("Too many attempts. Request new OTP.")

        supplied = (otp or "").strip()
        if not account.otp_code or not secrets.compare_digest(
            account.otp_code.encode(), supplied.encode()
        ):
            # Atomic increment in SQL so concurrent attempts are all counted
            account.otp_attempts = Account.otp_attempts + 1
            self.db.commit()
            raise ValidationError("Invalid OTP")

        if account.otp_expires_at is None or datetime.utcnow() > account.otp_expires_at:
            raise ValidationError("OTP expired")

    # ---------------------------------------------------------
    # REGISTRATION
    # ---------------------------------------------------------
    def register(self, name: str, email: str, password: str, attestation_token: Optional[str] = None) -> Account:
        validate_password_strength(password)
        self.recaptcha.verify(attestation_token)

        email = _normalize_email(email)
        account = self._get_account(email)
        if account and account.is_verified:
            raise ConflictError("User already exists")

        if not account:
            account = Account(email=email)
            self.db.add(account)

        # Pending registrations are overwritten, never duplicated
        account.name = name
        account.password_hash = get_password_hash(password)
        account.is_verified = False

        self._issue_otp(account, "Verify your email", verification_otp_email)
        return account

    def verify_otp(self, email: str, otp: str) -> Account:
        account = self._require_account(email)
        self._check_otp(account, otp)

        account.is_verified = True
        account.clear_otp()
        self.db.commit()
        logger.info(f"✅ Account verified: {account.email}")
        return account

    def resend_verification_otp(self, email: str) -> Account:
        account = self._require_account(email)
        if account.is_verified:
            raise ValidationError("Account is already verified")

        self._issue_otp(account, "Verify your email", verification_otp_email)
        return account

    # ---------------------------------------------------------
    # PASSWORD RESET
    # ---------------------------------------------------------
    def forgot_password(self, email: str, attestation_token: Optional[str] = None) -> Account:
        self.recaptcha.verify(attestation_token)

        account = self._require_account(email)
        if not account.is_verified:
            raise ValidationError("Please verify your email first")

        self._issue_otp(account, "Reset your password", reset_password_otp_email)
        return account

    def reset_password(
        self,
        email: str,
        otp: str,
        new_password: str,
        confirm_password: str,
        attestation_token: Optional[str] = None,
    ) -> Account:
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match")
        validate_password_strength(new_password)
        self.recaptcha.verify(attestation_token)

        account = self._require_account(email)
        self._check_otp(account, otp)

        if verify_password(new_password, account.password_hash):
            raise ValidationError("New password must be different from current password")

        account.password_hash = get_password_hash(new_password)
        account.clear_otp()
        self.db.commit()
        logger.info(f"🔑 Password reset for {account.email}")
        return account

    # ---------------------------------------------------------
    # LOGIN
    # ---------------------------------------------------------
    def login(self, email: str, password: str) -> Tuple[str, Account]:
        account = self._get_account(email)
        if not account or not verify_password(password, account.password_hash):
            raise AuthenticationError("Invalid credentials")

        if not account.is_verified:
            raise ForbiddenError("Please verify your email before logging in")

        token = create_access_token(
            data={"sub": str(account.id)},
            expires_delta=timedelta(minutes=self.config.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        return token, account

    # ---------------------------------------------------------
    # PROFILE
    # ---------------------------------------------------------
    def update_password(self, account: Account, current_password: str, new_password: str) -> Account:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")

        if not verify_password(current_password, account.password_hash):
            raise ValidationError("Current password is incorrect")

        if verify_password(new_password, account.password_hash):
            raise ValidationError("New password must be different from current password")

        validate_password_strength(new_password)

        account.password_hash = get_password_hash(new_password)
        account.clear_otp()
        self.db.commit()
        return account

    def update_profile(self, account: Account, name: Optional[str] = None, profile_photo: Optional[str] = None) -> Account:
        if name:
            account.name = name
        if profile_photo:
            account.profile_photo = profile_photo

        self.db.commit()
        self.db.refresh(account)
        return account
