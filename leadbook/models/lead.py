import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import relationship

from leadbook.core.database import Base


class LeadStatus(str, enum.Enum):
    UNSELECTED = "Select Status"
    RECEIVED = "received"
    NOT_RECEIVED = "not_received"
    SWITCH_OFF = "switch_off"
    CALLBACK = "callback"
    REQUIRED = "required"
    NOT_REQUIRED = "not_required"


class Lead(Base):
    __tablename__ = "leads"
    # A contact number appears at most once per owner
    __table_args__ = (
        UniqueConstraint("contact_number", "owner_id", name="uq_leads_contact_owner"),
    )

    id = Column(Integer, primary_key=True, index=True)

    company_name = Column(String, default="")
    contact_number = Column(String, nullable=False, index=True)
    address = Column(Text, default="")
    notes = Column(Text, default="")

    status = Column(String, default=LeadStatus.UNSELECTED.value, nullable=False)

    follow_up_at = Column(TIMESTAMP, nullable=True)
    followup_reminder_sent = Column(Boolean, default=False, nullable=False)

    owner_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    owner = relationship("Account", back_populates="leads")

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)
