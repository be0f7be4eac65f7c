"""Header normalisation and fuzzy column resolution for uploaded spreadsheets.

Spreadsheets arrive with whatever labels people typed: ``"Company Name"``,
``"COMPANY  NAME"``, ``"Contact No."``, ``"Phone#"``. Every label is reduced
to a lower-case alphanumeric key before comparison, and a logical field is
resolved through an ordered alias list with a substring fallback.
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

_NON_ALNUM = re.compile(r"[^a-z0-9]")

CONTACT_MARKERS = ("contact", "mobile", "phone")
COMPANY_MARKERS = ("company",)

# logical field -> (aliases in priority order, fuzzy substrings)
FIELD_ALIASES: Mapping[str, Tuple[Sequence[str], Sequence[str]]] = {
    "company_name": (
        ("company name", "company  name", "companyname", "name"),
        ("company", "name"),
    ),
    "contact_number": (
        (
            "contact no",
            "contact number",
            "contactnumber",
            "mobile",
            "mobile no",
            "phone",
            "phone number",
        ),
        CONTACT_MARKERS,
    ),
    "address": (("address",), ("address",)),
    "status": (("status",), ("status",)),
    "notes": (
        ("notes", "note", "remarks", "comment"),
        ("note", "remark", "comment"),
    ),
    "follow_up": (
        ("follow up date", "follow up date time", "followupdate", "followupdatetime"),
        ("followup", "follow"),
    ),
}


def normalize_header(header: Any) -> str:
    """Lower-case ``header`` and drop every character outside ``[a-z0-9]``."""
    if header is None:
        return ""
    return _NON_ALNUM.sub("", str(header).lower())


def has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return str(value).strip() != ""


def resolve_field(
    row: Mapping[str, Any],
    aliases: Iterable[str],
    fuzzy: Iterable[str] = (),
) -> Any:
    """Return the best raw value for a logical field, or ``""``.

    Aliases are tried first, in order. When none of them yields a value, the
    normalised keys are scanned for the first one containing each fuzzy
    substring in turn.
    """
    normalized: Dict[str, Any] = {}
    for key, value in (row or {}).items():
        normalized[normalize_header(key)] = value

    for alias in aliases:
        value = normalized.get(normalize_header(alias))
        if has_value(value):
            return value

    keys = list(normalized)
    for matcher in fuzzy:
        matched_key = next((k for k in keys if matcher in k), None)
        if matched_key is not None and has_value(normalized[matched_key]):
            return normalized[matched_key]

    return ""


def resolve_known_field(row: Mapping[str, Any], field: str) -> Any:
    aliases, fuzzy = FIELD_ALIASES[field]
    return resolve_field(row, aliases, fuzzy)


def is_contact_header(normalized: str) -> bool:
    return any(marker in normalized for marker in CONTACT_MARKERS)


def is_company_header(normalized: str) -> bool:
    return any(marker in normalized for marker in COMPANY_MARKERS) or normalized == "name"


def looks_like_header_row(cells: Sequence[Any]) -> bool:
    """A header row names at least one contact column and one company column."""
    if not cells:
        return False
    normalized = [normalize_header(cell) for cell in cells]
    return any(is_contact_header(c) for c in normalized) and any(is_company_header(c) for c in normalized)


def _first_index(headers: List[str], predicate) -> int:
    return next((idx for idx, header in enumerate(headers) if predicate(header)), -1)


def locate_columns(headers: Sequence[Any]) -> Dict[str, int]:
    """Map each logical field to the first matching column position (-1 if none)."""
    normalized = [normalize_header(h) for h in headers]
    return {
        "company_name": _first_index(normalized, is_company_header),
        "contact_number": _first_index(normalized, is_contact_header),
        "address": _first_index(normalized, lambda h: "address" in h),
        "status": _first_index(normalized, lambda h: "status" in h),
        "follow_up": _first_index(normalized, lambda h: "followup" in h or "follow" in h),
        "notes": _first_index(
            normalized, lambda h: "note" in h or "remark" in h or "comment" in h
        ),
    }


__all__ = [
    "FIELD_ALIASES",
    "has_value",
    "is_company_header",
    "is_contact_header",
    "locate_columns",
    "looks_like_header_row",
    "normalize_header",
    "resolve_field",
    "resolve_known_field",
]
