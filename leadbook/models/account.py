from datetime import datetime

from sqlalchemy import Boolean, Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.orm import relationship

from leadbook.core.database import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String)

    is_verified = Column(Boolean, default=False, nullable=False)

    # One-time code for email verification / password reset.
    # otp_code and otp_expires_at are always set and cleared together.
    otp_code = Column(String, nullable=True)
    otp_expires_at = Column(TIMESTAMP, nullable=True)
    otp_attempts = Column(Integer, default=0, nullable=False)

    profile_photo = Column(Text, nullable=True)  # URL or data URI

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    leads = relationship("Lead", back_populates="owner")

    def set_otp(self, code: str, expires_at: datetime):
        self.otp_code = code
        self.otp_expires_at = expires_at
        self.otp_attempts = 0

    def clear_otp(self):
        self.otp_code = None
        self.otp_expires_at = None
        self.otp_attempts = 0
