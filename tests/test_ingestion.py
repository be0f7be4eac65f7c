import io
from datetime import datetime

import pandas as pd
import pytest

from leadbook.core.security import get_password_hash
from leadbook.ingestion import (
    NoUsableRowsError,
    UnsupportedFileTypeError,
    ingest_rows,
    read_rows,
)
from leadbook.ingestion.engine import find_header_row
from leadbook.models import Account, Lead

HEADER = ["Company Name", "Contact No", "Address", "Status", "Follow Up Date", "Notes"]


@pytest.fixture
def owner(db):
    account = Account(name="Owner", email="owner@leadbook.io", password_hash=get_password_hash("Secret#123"), is_verified=True)
    db.add(account)
    db.commit()
    return account


def test_header_row_is_found_below_title_rows():
    rows = [["Leads for March"], [], HEADER, ["Acme", "9876543210"]]
    assert find_header_row(rows) == 2


def test_first_non_blank_row_is_header_fallback():
    rows = [[], ["", ""], ["Misc", "Other"], ["a", "b"]]
    assert find_header_row(rows) == 2


def test_no_rows_is_rejected():
    with pytest.raises(NoUsableRowsError):
        find_header_row([[], [""]])


def test_ingest_mixed_upload(db, owner):
    rows = [
        ["Lead sheet"],
        HEADER,
        ["Acme", "98765 43210", "Pune", "Callback", 45000.5, "call back"],
        [],
        ["Beta", "9876543210", "Mumbai", "", "", ""],
        ["Gamma", "", "Delhi", "received", "", ""],
        ["Delta", 9123456780, "", "who knows", "tomorrow-ish", ""],
    ]

    report = ingest_rows(db, rows, owner.id)

    assert report.success_count == 2
    assert report.failed_count == 2
    duplicate, missing = report.failed_rows
    assert duplicate.row_number == 5
    assert duplicate.reason == "Duplicate phone number in this upload: 9876543210"
    assert duplicate.data["Company Name"] == "Beta"
    assert missing.row_number == 6
    assert missing.reason == "Phone number is required"

    acme = db.query(Lead).filter(Lead.contact_number == "9876543210").one()
    assert acme.company_name == "Acme"
    assert acme.status == "callback"
    assert acme.follow_up_at == datetime(2023, 3, 15, 12, 0)
    assert acme.followup_reminder_sent is False

    delta = db.query(Lead).filter(Lead.contact_number == "9123456780").one()
    assert delta.status == "Select Status"
    assert delta.follow_up_at is None


def test_existing_number_is_rejected(db, owner):
    db.add(Lead(contact_number="9876543210", owner_id=owner.id))
    db.commit()

    report = ingest_rows(db, [HEADER, ["Acme", "9876543210"]], owner.id)

    assert report.success_count == 0
    assert report.failed_rows[0].reason == "Phone number already exists: 9876543210"
    assert report.failed_rows[0].row_number == 2


def test_same_number_allowed_for_other_owner(db, owner):
    other = Account(name="Other", email="other@leadbook.io", is_verified=True)
    db.add(other)
    db.commit()
    db.add(Lead(contact_number="9876543210", owner_id=other.id))
    db.commit()

    report = ingest_rows(db, [HEADER, ["Acme", "9876543210"]], owner.id)
    assert report.success_count == 1


def test_phone_like_cell_is_used_without_contact_column(db, owner):
    rows = [["Company", "Misc"], ["Acme", "+91 98765-43210"]]

    report = ingest_rows(db, rows, owner.id)

    assert report.success_count == 1
    assert db.query(Lead).one().contact_number == "+9198765-43210"


def test_read_csv_rows():
    content = b"Company Name,Contact No\nAcme,09876543210\n"
    assert read_rows(content, "leads.csv") == [["Company Name", "Contact No"], ["Acme", "09876543210"]]


def test_read_excel_rows():
    frame = pd.DataFrame(
        [
            ["Company Name", "Contact No", "Follow Up Date"],
            ["Acme", 9876543210, datetime(2024, 5, 1, 10, 30)],
            ["Beta", 9123456780, None],
        ]
    )
    buffer = io.BytesIO()
    frame.to_excel(buffer, header=False, index=False)

    rows = read_rows(buffer.getvalue(), "leads.xlsx")

    assert rows[0] == ["Company Name", "Contact No", "Follow Up Date"]
    assert rows[1][1] == 9876543210
    assert rows[1][2] == datetime(2024, 5, 1, 10, 30)
    assert rows[2][2] == ""


def test_unsupported_extension():
    with pytest.raises(UnsupportedFileTypeError):
        read_rows(b"%PDF", "leads.pdf")


def test_empty_upload_has_no_rows():
    assert read_rows(b"", "leads.csv") == []


def test_plain_company_and_contact_row(db, owner):
    rows = [["Company Name", "Contact No", "Status"], ["Acme", "98765 43210", "Received"]]

    report = ingest_rows(db, rows, owner.id)

    assert report.success_count == 1
    lead = db.query(Lead).one()
    assert lead.contact_number == "9876543210"
    assert lead.status == "received"


def test_whitespace_only_rows_are_not_counted(db, owner):
    rows = [HEADER, ["  ", "\t", ""], ["Acme", "9876543210"]]

    report = ingest_rows(db, rows, owner.id)

    assert report.success_count == 1
    assert report.failed_count == 0


def test_header_without_data_rows(db, owner):
    report = ingest_rows(db, [["Leads for March"], HEADER], owner.id)

    assert report.success_count == 0
    assert report.failed_count == 0
    assert db.query(Lead).count() == 0


def test_date_cell_is_not_mistaken_for_phone(db, owner):
    rows = [
        ["Company Name", "Contact No", "Follow Up Date"],
        ["Beta", "", datetime(2024, 5, 1, 10, 30)],
    ]

    report = ingest_rows(db, rows, owner.id)

    assert report.success_count == 0
    assert report.failed_rows[0].reason == "Phone number is required"
    assert db.query(Lead).count() == 0


def test_read_csv_with_title_line_and_ragged_rows():
    content = (
        b"Leads for March\n"
        b"Company Name,Contact No,Status\n"
        b"Acme,98765 43210,Received,extra cell\n"
        b"Beta,9123456780\n"
    )

    rows = read_rows(content, "leads.csv")

    assert rows == [
        ["Leads for March", "", "", ""],
        ["Company Name", "Contact No", "Status", ""],
        ["Acme", "98765 43210", "Received", "extra cell"],
        ["Beta", "9123456780", "", ""],
    ]
    assert find_header_row(rows) == 1
