import logging
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from leadbook.core.config import settings
from leadbook.core.database import SessionLocal
from leadbook.models.account import Account
from leadbook.models.lead import Lead, LeadStatus
from leadbook.services.email_service import EmailService
from leadbook.services.email_templates import followup_reminder_email

logger = logging.getLogger(__name__)


def find_due_leads(db: Session, now: datetime = None):
    """Callbacks due within the reminder window that have not been reminded yet."""
    now = now or datetime.utcnow()
    window_end = now + timedelta(minutes=settings.REMINDER_WINDOW_MINUTES)

    return db.query(Lead).filter(
        Lead.status == LeadStatus.CALLBACK.value,
        Lead.follow_up_at.isnot(None),
        Lead.follow_up_at <= window_end,
        Lead.followup_reminder_sent.is_(False),
    ).all()


def mark_reminder_sent(db: Session, lead_id: int) -> bool:
    """Set the reminder flag only if it is still unset. Returns True if this call set it."""
    result = db.execute(
        update(Lead)
        .where(Lead.id == lead_id, Lead.followup_reminder_sent.is_(False))
        .values(followup_reminder_sent=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def send_due_reminders(db: Session, email_service: EmailService, now: datetime = None) -> int:
    """Send one reminder per due lead. Returns how many reminders went out."""
    sent = 0

    for lead in find_due_leads(db, now):
        owner = db.query(Account).get(lead.owner_id)
        if not owner:
            logger.warning(f"⚠️ Lead {lead.id} has no owner account; skipping reminder")
            continue

        success, error = email_service.send_email(
            owner.email,
            f"Follow-up Reminder ({settings.REMINDER_WINDOW_MINUTES} Minutes)",
            followup_reminder_email(lead, settings.REMINDER_WINDOW_MINUTES),
        )
        if not success:
            # Flag stays unset so the next sweep retries
            logger.error(f"❌ Reminder for lead {lead.id} failed: {error}")
            continue

        if mark_reminder_sent(db, lead.id):
            sent += 1
            logger.info(f"⏰ Reminder sent to {owner.email} for lead {lead.id}")

    return sent


def run_followup_reminders():
    db = SessionLocal()
    email_service = EmailService()

    try:
        logger.info("Checking follow-ups...")
        sent = send_due_reminders(db, email_service)
        if sent:
            logger.info(f"✅ Follow-up sweep sent {sent} reminders")
    except Exception as e:
        logger.error(f"Follow-up sweep error: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    run_followup_reminders()
