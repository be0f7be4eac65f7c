import math
from typing import Optional

from sqlalchemy import desc, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from leadbook.core.config import settings
from leadbook.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from leadbook.ingestion.normalizer import canonicalize_contact_number, normalize_status
from leadbook.models.lead import Lead
from leadbook.schemas.lead import LeadCreate, LeadUpdate


class LeadService:
    def __init__(self, db: Session):
        self.db = db

    def _duplicate_exists(self, owner_id: int, contact_number: str, exclude_id: int = None) -> bool:
        query = self.db.query(Lead.id).filter(
            Lead.owner_id == owner_id, Lead.contact_number == contact_number
        )
        if exclude_id is not None:
            query = query.filter(Lead.id != exclude_id)
        return query.first() is not None

    def _commit_or_conflict(self, contact_number: str):
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Phone number {contact_number} already exists in your leads")

    def _get_owned(self, owner_id: int, lead_id: int, action: str) -> Lead:
        lead = self.db.query(Lead).get(lead_id)
        if not lead:
            raise NotFoundError("Lead not found")
        if lead.owner_id != owner_id:
            raise ForbiddenError(f"Unauthorized: You can only {action} leads you created")
        return lead

    # ---------------------------------------------------------
    # CREATE
    # ---------------------------------------------------------
    def create_lead(self, owner_id: int, data: LeadCreate) -> Lead:
        contact_number = canonicalize_contact_number(data.contact_number)
        if not contact_number:
            raise ValidationError("Phone number is required")

        if self._duplicate_exists(owner_id, contact_number):
            raise ConflictError(f"Phone number {contact_number} already exists in your leads")

        lead = Lead(
            company_name=(data.company_name or "").strip(),
            contact_number=contact_number,
            address=(data.address or "").strip(),
            notes=(data.notes or "").strip(),
            status=normalize_status(data.status),
            follow_up_at=data.follow_up_at,
            owner_id=owner_id,
        )
        self.db.add(lead)
        self._commit_or_conflict(contact_number)
        self.db.refresh(lead)
        return lead

    # ---------------------------------------------------------
    # LIST (owner scoped)
    # ---------------------------------------------------------
    def list_leads(self, owner_id: int, page: int = 1, search: Optional[str] = None, status: Optional[str] = None):
        page = max(page or 1, 1)
        limit = settings.LEADS_PAGE_SIZE

        query = self.db.query(Lead).filter(Lead.owner_id == owner_id)

        if search:
            # % and _ are literal in user searches
            escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{escaped}%"
            query = query.filter(or_(
                Lead.company_name.ilike(pattern, escape="\\"),
                Lead.contact_number.ilike(pattern, escape="\\"),
                Lead.address.ilike(pattern, escape="\\"),
                Lead.notes.ilike(pattern, escape="\\"),
            ))

        if status:
            query = query.filter(Lead.status == status)

        total = query.count()
        results = query.order_by(desc(Lead.created_at), desc(Lead.id))\
                       .offset((page - 1) * limit)\
                       .limit(limit).all()

        return {"leads": results, "total": total, "page": page, "pages": math.ceil(total / limit)}

    # ---------------------------------------------------------
    # UPDATE
    # ---------------------------------------------------------
    def update_lead(self, owner_id: int, lead_id: int, data: LeadUpdate) -> Lead:
        lead = self._get_owned(owner_id, lead_id, "update")

        # Update only provided fields
        update_data = data.model_dump(exclude_unset=True)

        if "contact_number" in update_data:
            contact_number = canonicalize_contact_number(update_data["contact_number"])
            if not contact_number:
                raise ValidationError("Phone number is required")
            if self._duplicate_exists(owner_id, contact_number, exclude_id=lead.id):
                raise ConflictError(f"Phone number {contact_number} already exists in your leads")
            update_data["contact_number"] = contact_number

        if "status" in update_data:
            status = normalize_status(update_data["status"], default=None)
            if status is None:
                update_data.pop("status")
            else:
                update_data["status"] = status

        for key in ("company_name", "address", "notes"):
            if key in update_data:
                update_data[key] = (update_data[key] or "").strip()

        if "follow_up_at" in update_data:
            # New follow-up time, new reminder
            update_data["followup_reminder_sent"] = False

        for key, value in update_data.items():
            setattr(lead, key, value)

        self._commit_or_conflict(lead.contact_number)
        self.db.refresh(lead)
        return lead

    # ---------------------------------------------------------
    # DELETE
    # ---------------------------------------------------------
    def delete_lead(self, owner_id: int, lead_id: int) -> None:
        lead = self._get_owned(owner_id, lead_id, "delete")
        self.db.delete(lead)
        self.db.commit()
