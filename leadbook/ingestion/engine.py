"""Bulk lead ingestion with per-row failure accounting.

Rows are processed strictly in order: the duplicate checks for a row must see
every lead written by the rows before it.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Dict, List, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from leadbook.core.errors import ValidationError
from leadbook.ingestion.headers import (
    FIELD_ALIASES,
    has_value,
    locate_columns,
    looks_like_header_row,
    resolve_known_field,
)
from leadbook.ingestion.normalizer import LeadCandidate, RowValidationError, build_candidate, cell_text
from leadbook.models.lead import Lead

logger = logging.getLogger(__name__)

_PHONE_LIKE = re.compile(r"\d{8,}")
_NON_DIGIT = re.compile(r"\D")


class NoUsableRowsError(ValidationError):
    """The upload has no row that could serve as a header."""


@dataclass(slots=True)
class FailedRow:
    row_number: int
    reason: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class IngestionReport:
    success_count: int = 0
    failed_rows: List[FailedRow] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed_rows)


@dataclass(slots=True)
class _SourceRow:
    row_number: int
    cells: List[Any]
    mapping: Dict[str, Any]


def _row_is_blank(cells: Sequence[Any]) -> bool:
    return not any(has_value(cell) for cell in cells)


def find_header_row(rows: Sequence[Sequence[Any]]) -> int:
    """Index of the header row.

    Prefers the first row naming both a contact and a company column, then
    the first row with any content.
    """
    for idx, row in enumerate(rows):
        if looks_like_header_row(row):
            return idx
    for idx, row in enumerate(rows):
        if row and not _row_is_blank(row):
            return idx
    raise NoUsableRowsError("No usable rows found in file")


def _source_rows(rows: Sequence[Sequence[Any]], header_index: int, headers: List[str]) -> List[_SourceRow]:
    source_rows = []
    for offset, cells in enumerate(rows[header_index + 1:]):
        cells = list(cells or [])
        if _row_is_blank(cells):
            continue
        mapping = {
            header: (cells[idx] if idx < len(cells) else "")
            for idx, header in enumerate(headers)
            if header
        }
        # 1-based sheet row: header row + offset + 1 for the header itself
        source_rows.append(_SourceRow(header_index + offset + 2, cells, mapping))
    return source_rows


def _find_phone_like(cells: Sequence[Any]) -> Any:
    for cell in cells:
        # Timestamps flatten to 12+ digits
        if isinstance(cell, (date, time, bool)):
            continue
        if _PHONE_LIKE.search(_NON_DIGIT.sub("", cell_text(cell))):
            return cell
    return ""


class BulkIngestionEngine:
    def __init__(self, db: Session):
        self.db = db

    def ingest(self, rows: Sequence[Sequence[Any]], owner_id: int) -> IngestionReport:
        header_index = find_header_row(rows)
        headers = [cell_text(h).strip() for h in rows[header_index]]
        columns = locate_columns(headers)

        source_rows = _source_rows(rows, header_index, headers)
        logger.info(f"📥 Bulk upload for account {owner_id}: {len(source_rows)} rows below header row {header_index + 1}")

        report = IngestionReport()
        seen_numbers = set()

        for source in source_rows:
            fields = self._resolve_fields(source, columns)
            try:
                candidate = build_candidate(fields, owner_id)

                if candidate.contact_number in seen_numbers:
                    raise RowValidationError(
                        f"Duplicate phone number in this upload: {candidate.contact_number}"
                    )

                if self._exists(candidate.contact_number, owner_id):
                    raise RowValidationError(f"Phone number already exists: {candidate.contact_number}")

                self._persist(candidate)
                seen_numbers.add(candidate.contact_number)
                report.success_count += 1

            except RowValidationError as e:
                report.failed_rows.append(FailedRow(source.row_number, str(e), source.mapping))

        if report.failed_rows:
            logger.warning(f"⚠️ Bulk upload for account {owner_id}: {report.failed_count} rows rejected")
        logger.info(f"✅ Bulk upload for account {owner_id}: {report.success_count} leads created")
        return report

    def _resolve_fields(self, source: _SourceRow, columns: Dict[str, int]) -> Dict[str, Any]:
        fields = {}
        for name in FIELD_ALIASES:
            value = resolve_known_field(source.mapping, name)
            idx = columns.get(name, -1)
            if not has_value(value) and 0 <= idx < len(source.cells):
                value = source.cells[idx]
            fields[name] = value

        if not has_value(fields["contact_number"]):
            fields["contact_number"] = _find_phone_like(source.cells)
        return fields

    def _exists(self, contact_number: str, owner_id: int) -> bool:
        return (
            self.db.query(Lead.id)
            .filter(Lead.contact_number == contact_number, Lead.owner_id == owner_id)
            .first()
            is not None
        )

    def _persist(self, candidate: LeadCandidate) -> Lead:
        lead = Lead(**candidate.as_lead_fields())
        self.db.add(lead)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request stored the same number after our existence check
            self.db.rollback()
            raise RowValidationError(f"Phone number already exists: {candidate.contact_number}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to store lead {candidate.contact_number}: {e}")
            raise RowValidationError("Could not save this row")
        return lead


def ingest_rows(db: Session, rows: Sequence[Sequence[Any]], owner_id: int) -> IngestionReport:
    return BulkIngestionEngine(db).ingest(rows, owner_id)


__all__ = [
    "BulkIngestionEngine",
    "FailedRow",
    "IngestionReport",
    "NoUsableRowsError",
    "find_header_row",
    "ingest_rows",
]
