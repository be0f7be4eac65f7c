from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from leadbook.ingestion.normalizer import to_naive_utc
from leadbook.schemas.base import CamelModel


class LeadBase(CamelModel):
    company_name: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    follow_up_at: Optional[datetime] = Field(default=None, alias="followUpDateTime")

    @field_validator("contact_number", mode="before")
    @classmethod
    def number_as_text(cls, value):
        # Clients sometimes post phone numbers as JSON numbers
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("follow_up_at")
    @classmethod
    def follow_up_as_utc(cls, value):
        return to_naive_utc(value) if value else value


class LeadCreate(LeadBase):
    pass


class LeadUpdate(LeadBase):
    pass


class LeadResponse(CamelModel):
    id: int
    company_name: Optional[str] = ""
    contact_number: str
    address: Optional[str] = ""
    notes: Optional[str] = ""
    status: str
    follow_up_at: Optional[datetime] = Field(default=None, alias="followUpDateTime")
    followup_reminder_sent: bool = Field(default=False, alias="followUpReminderSent")
    owner_id: int = Field(alias="createdBy")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeadListResponse(CamelModel):
    leads: List[LeadResponse]
    total: int
    page: int
    pages: int


class FailedRowResponse(CamelModel):
    row_number: int
    reason: str
    data: Dict[str, Any]


class BulkUploadResponse(CamelModel):
    message: str
    success_count: int
    failed_count: int
    failed_rows: List[FailedRowResponse]
