from leadbook.models import Lead

from conftest import signup


def _create(client, headers, **fields):
    payload = {"companyName": "Acme", "contactNumber": "9876543210", **fields}
    return client.post("/users", json=payload, headers=headers)


def test_leads_require_auth(client):
    assert client.get("/users").status_code == 401
    assert client.post("/users", json={"contactNumber": "1"}).status_code == 401


def test_create_and_list(client, db):
    headers = signup(client, db, "ana@leadbook.io")

    resp = _create(
        client,
        headers,
        contactNumber="98765 43210",
        status="Callback",
        followUpDateTime="2030-01-01T15:30:00+05:30",
    )
    assert resp.status_code == 200, resp.text
    lead = resp.json()
    assert lead["contactNumber"] == "9876543210"
    assert lead["status"] == "callback"
    assert lead["followUpDateTime"] == "2030-01-01T10:00:00"
    assert lead["followUpReminderSent"] is False

    resp = client.get("/users", headers=headers)
    body = resp.json()
    assert body["total"] == 1
    assert body["pages"] == 1
    assert body["leads"][0]["id"] == lead["id"]


def test_create_defaults_and_numeric_phone(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    resp = client.post("/users", json={"contactNumber": 9123456780}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["contactNumber"] == "9123456780"
    assert resp.json()["status"] == "Select Status"


def test_create_requires_phone(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    resp = _create(client, headers, contactNumber="   ")
    assert resp.status_code == 400


def test_duplicate_number_per_owner(client, db):
    ana = signup(client, db, "ana@leadbook.io")
    ben = signup(client, db, "ben@leadbook.io")

    assert _create(client, ana).status_code == 200
    resp = _create(client, ana, contactNumber="98765 432 10")
    assert resp.status_code == 409
    assert resp.json() == {"detail": "Phone number 9876543210 already exists in your leads"}

    assert _create(client, ben).status_code == 200


def test_pagination_search_and_status(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    for i in range(12):
        status = "callback" if i % 3 == 0 else "received"
        _create(client, headers, companyName=f"Company {i}", contactNumber=f"90000000{i:02d}", status=status)
    _create(client, headers, companyName="Zeta Traders", contactNumber="8000000000", notes="met at expo")

    body = client.get("/users", headers=headers).json()
    assert body["total"] == 13
    assert body["pages"] == 2
    assert len(body["leads"]) == 10

    body = client.get("/users", params={"page": 2}, headers=headers).json()
    assert len(body["leads"]) == 3

    body = client.get("/users", params={"search": "expo"}, headers=headers).json()
    assert [lead["companyName"] for lead in body["leads"]] == ["Zeta Traders"]

    body = client.get("/users", params={"status": "callback"}, headers=headers).json()
    assert body["total"] == 4


def test_owner_scoping(client, db):
    ana = signup(client, db, "ana@leadbook.io")
    ben = signup(client, db, "ben@leadbook.io")
    lead_id = _create(client, ana).json()["id"]

    assert client.get("/users", headers=ben).json()["total"] == 0

    resp = client.put(f"/users/{lead_id}", json={"notes": "mine"}, headers=ben)
    assert resp.status_code == 403
    assert resp.json() == {"detail": "Unauthorized: You can only update leads you created"}

    resp = client.delete(f"/users/{lead_id}", headers=ben)
    assert resp.status_code == 403

    assert client.delete("/users/9999", headers=ana).status_code == 404


def test_update_resets_reminder(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    lead_id = _create(client, headers, status="callback", followUpDateTime="2030-01-01T10:00:00").json()["id"]

    lead = db.query(Lead).get(lead_id)
    lead.followup_reminder_sent = True
    db.commit()

    resp = client.put(f"/users/{lead_id}", json={"followUpDateTime": "2030-01-02T10:00:00", "status": "nonsense"}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["followUpReminderSent"] is False
    assert body["followUpDateTime"] == "2030-01-02T10:00:00"
    assert body["status"] == "callback"
    assert body["companyName"] == "Acme"


def test_update_to_existing_number_conflicts(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    _create(client, headers)
    other_id = _create(client, headers, contactNumber="9123456780").json()["id"]

    resp = client.put(f"/users/{other_id}", json={"contactNumber": "9876543210"}, headers=headers)
    assert resp.status_code == 409


def test_delete(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    lead_id = _create(client, headers).json()["id"]

    resp = client.delete(f"/users/{lead_id}", headers=headers)
    assert resp.json() == {"message": "Deleted"}
    assert client.get("/users", headers=headers).json()["total"] == 0


def test_bulk_upload_csv(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    _create(client, headers, contactNumber="9000000001")

    content = (
        "Company Name,Contact No,Status,Notes\n"
        "Acme,9876543210,Callback,first\n"
        "Beta,9000000001,received,dup of existing\n"
        "Gamma,,received,no phone\n"
    ).encode()
    resp = client.post(
        "/users/bulk-upload",
        files={"file": ("leads.csv", content, "text/csv")},
        headers=headers,
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Bulk upload completed"
    assert body["successCount"] == 1
    assert body["failedCount"] == 2
    assert body["failedRows"][0] == {
        "rowNumber": 3,
        "reason": "Phone number already exists: 9000000001",
        "data": {"Company Name": "Beta", "Contact No": "9000000001", "Status": "received", "Notes": "dup of existing"},
    }
    assert body["failedRows"][1]["reason"] == "Phone number is required"


def test_bulk_upload_rejects_bad_files(client, db):
    headers = signup(client, db, "ana@leadbook.io")

    resp = client.post("/users/bulk-upload", headers=headers)
    assert resp.status_code == 400

    resp = client.post("/users/bulk-upload", files={"file": ("leads.pdf", b"%PDF", "application/pdf")}, headers=headers)
    assert resp.status_code == 400

    resp = client.post("/users/bulk-upload", files={"file": ("leads.csv", b"", "text/csv")}, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "No usable rows found in file"}


def test_bulk_upload_csv_with_title_line(client, db):
    headers = signup(client, db, "ana@leadbook.io")

    content = (
        "Leads for March\n"
        "Company Name,Contact No,Status\n"
        "Acme,98765 43210,Received,spare\n"
        "Beta,9123456780\n"
    ).encode()
    resp = client.post(
        "/users/bulk-upload",
        files={"file": ("leads.csv", content, "text/csv")},
        headers=headers,
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["successCount"] == 2
    assert body["failedCount"] == 0

    leads = client.get("/users", params={"search": "Acme"}, headers=headers).json()["leads"]
    assert leads[0]["contactNumber"] == "9876543210"
    assert leads[0]["status"] == "received"


def test_search_treats_wildcards_literally(client, db):
    headers = signup(client, db, "ana@leadbook.io")
    _create(client, headers, companyName="Acme 100% Solar", contactNumber="9000000001")
    _create(client, headers, companyName="Acme Solar", contactNumber="9000000002")
    _create(client, headers, companyName="North_West Traders", contactNumber="9000000003")
    _create(client, headers, companyName="NorthXWest Traders", contactNumber="9000000004")

    body = client.get("/users", params={"search": "100%"}, headers=headers).json()
    assert [lead["companyName"] for lead in body["leads"]] == ["Acme 100% Solar"]

    body = client.get("/users", params={"search": "%"}, headers=headers).json()
    assert body["total"] == 1

    body = client.get("/users", params={"search": "North_West"}, headers=headers).json()
    assert [lead["companyName"] for lead in body["leads"]] == ["North_West Traders"]
