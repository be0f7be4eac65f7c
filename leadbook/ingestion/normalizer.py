"""Turns one resolved spreadsheet row into a typed lead candidate."""
from __future__ import annotations

import math
import numbers
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Mapping, Optional

from dateutil import parser as date_parser

from leadbook.ingestion.headers import has_value
from leadbook.models.lead import LeadStatus

_WHITESPACE = re.compile(r"\s+")

STATUS_ALIASES: Mapping[str, LeadStatus] = {
    "received": LeadStatus.RECEIVED,
    "not received": LeadStatus.NOT_RECEIVED,
    "not_received": LeadStatus.NOT_RECEIVED,
    "not recived": LeadStatus.NOT_RECEIVED,
    "switch off": LeadStatus.SWITCH_OFF,
    "switch_off": LeadStatus.SWITCH_OFF,
    "callback": LeadStatus.CALLBACK,
    "required": LeadStatus.REQUIRED,
    "not required": LeadStatus.NOT_REQUIRED,
    "not_required": LeadStatus.NOT_REQUIRED,
}

# Spreadsheet serial dates (1900 date system). Serial 60 is the fictitious
# 1900-02-29, so serials up to 60 count from 1899-12-31 and later ones from
# 1899-12-30.
_SERIAL_EPOCH_EARLY = datetime(1899, 12, 31)
_SERIAL_EPOCH = datetime(1899, 12, 30)
_MAX_SERIAL = 2958465  # 9999-12-31


class RowValidationError(ValueError):
    """A single spreadsheet row cannot become a lead."""


@dataclass(slots=True)
class LeadCandidate:
    """Validated, typed representation of one uploaded row."""

    contact_number: str
    owner_id: int
    company_name: str = ""
    address: str = ""
    notes: str = ""
    status: str = LeadStatus.UNSELECTED.value
    follow_up_at: Optional[datetime] = None

    def as_lead_fields(self) -> dict:
        return {
            "company_name": self.company_name,
            "contact_number": self.contact_number,
            "address": self.address,
            "notes": self.notes,
            "status": self.status,
            "follow_up_at": self.follow_up_at,
            "owner_id": self.owner_id,
        }


def cell_text(value: Any) -> str:
    """Render a raw cell as text; integral floats lose their ``.0``."""
    if not has_value(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def clean_text(value: Any) -> str:
    return cell_text(value).strip()


def canonicalize_contact_number(value: Any) -> str:
    """Remove all whitespace; every other character is significant.

    ``"080 22 5590" -> "080225590"``
    ``"9898098781/1090101010"`` is kept as-is.
    """
    return _WHITESPACE.sub("", cell_text(value).strip())


def normalize_status(value: Any, default: Optional[str] = LeadStatus.UNSELECTED.value) -> Optional[str]:
    if not has_value(value):
        return default
    status = STATUS_ALIASES.get(str(value).lower().strip())
    return status.value if status else default


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def serial_to_datetime(serial: float) -> Optional[datetime]:
    """Convert a spreadsheet date serial to a naive UTC datetime."""
    if isinstance(serial, float) and math.isnan(serial):
        return None
    if serial < 0 or serial > _MAX_SERIAL:
        return None

    days = int(math.floor(serial))
    day_seconds = 86400 * (serial - days)
    seconds = int(math.floor(day_seconds))
    if day_seconds - seconds > 0.9999:
        seconds += 1

    epoch = _SERIAL_EPOCH_EARLY if days <= 60 else _SERIAL_EPOCH
    return epoch + timedelta(days=days, seconds=seconds)


def parse_follow_up(value: Any) -> Optional[datetime]:
    """Coerce a follow-up cell to a datetime; anything unusable is ``None``."""
    if not has_value(value):
        return None

    if isinstance(value, datetime):
        return to_naive_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return serial_to_datetime(float(value))

    try:
        return to_naive_utc(date_parser.parse(str(value).strip()))
    except (ValueError, OverflowError):
        return None


def build_candidate(fields: Mapping[str, Any], owner_id: int) -> LeadCandidate:
    """Build a :class:`LeadCandidate` from a resolved field bag.

    Only the contact number is mandatory. Status, follow-up and the free
    text fields fall back to their defaults instead of failing the row.
    """
    contact_number = canonicalize_contact_number(fields.get("contact_number"))
    if not contact_number:
        raise RowValidationError("Phone number is required")

    return LeadCandidate(
        contact_number=contact_number,
        owner_id=owner_id,
        company_name=clean_text(fields.get("company_name")),
        address=clean_text(fields.get("address")),
        notes=clean_text(fields.get("notes")),
        status=normalize_status(fields.get("status")),
        follow_up_at=parse_follow_up(fields.get("follow_up")),
    )


__all__ = [
    "LeadCandidate",
    "RowValidationError",
    "STATUS_ALIASES",
    "build_candidate",
    "canonicalize_contact_number",
    "cell_text",
    "clean_text",
    "normalize_status",
    "parse_follow_up",
    "serial_to_datetime",
    "to_naive_utc",
]
