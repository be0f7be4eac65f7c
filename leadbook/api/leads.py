import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from leadbook.core.database import get_db
from leadbook.core.security import get_current_account
from leadbook.ingestion import ingest_rows, read_rows
from leadbook.models.account import Account
from leadbook.schemas.base import MessageResponse
from leadbook.schemas.lead import (
    BulkUploadResponse,
    LeadCreate,
    LeadListResponse,
    LeadResponse,
    LeadUpdate,
)
from leadbook.services.lead_service import LeadService

logger = logging.getLogger(__name__)

# Leads are exposed under /users for compatibility with the existing frontend
router = APIRouter(prefix="/users", tags=["Leads"])


# --- CREATE ---
@router.post("", response_model=LeadResponse)
def create_lead(
    payload: LeadCreate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    return LeadService(db).create_lead(account.id, payload)


# --- BULK UPLOAD ---
@router.post("/bulk-upload", response_model=BulkUploadResponse)
def bulk_upload(
    file: Optional[UploadFile] = File(None),
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    logger.info(f"Bulk upload started: {file.filename}")
    rows = read_rows(file.file.read(), file.filename)
    report = ingest_rows(db, rows, account.id)

    return {
        "message": "Bulk upload completed",
        "success_count": report.success_count,
        "failed_count": report.failed_count,
        "failed_rows": [
            {"row_number": row.row_number, "reason": row.reason, "data": row.data}
            for row in report.failed_rows
        ],
    }


# --- READ (paginated, owner scoped) ---
@router.get("", response_model=LeadListResponse)
def list_leads(
    page: int = 1,
    search: Optional[str] = None,
    status: Optional[str] = None,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    return LeadService(db).list_leads(account.id, page=page, search=search, status=status)


# --- UPDATE ---
@router.put("/{lead_id}", response_model=LeadResponse)
def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    return LeadService(db).update_lead(account.id, lead_id, payload)


# --- DELETE ---
@router.delete("/{lead_id}", response_model=MessageResponse)
def delete_lead(
    lead_id: int,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    LeadService(db).delete_lead(account.id, lead_id)
    return {"message": "Deleted"}
