import os

# Must be set before leadbook is imported: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RECAPTCHA_SECRET_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from leadbook.core.database import Base, SessionLocal, engine
from leadbook.main import app
from leadbook.models import Account
from leadbook.services.email_service import get_email_service
from leadbook.services.recaptcha_service import RecaptchaVerifier, get_recaptcha_verifier

PASSWORD = "Secret#123"


class FakeEmailService:
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_email(self, to_email, subject, html_body):
        if self.fail:
            return False, "SMTP_NOT_CONFIGURED"
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})
        return True, None


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def client(db, email_service):
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_recaptcha_verifier] = lambda: RecaptchaVerifier(secret_key=None)
    yield TestClient(app)
    app.dependency_overrides.clear()


def current_otp(db, email):
    db.expire_all()
    return db.query(Account).filter(Account.email == email).one().otp_code


def signup(client, db, email, name="Test User", password=PASSWORD):
    """Register, verify and log in; returns auth headers."""
    resp = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 200, resp.text
    resp = client.post("/auth/verify-otp", json={"email": email, "otp": current_otp(db, email)})
    assert resp.status_code == 200, resp.text
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}
