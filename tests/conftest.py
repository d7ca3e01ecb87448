from __future__ import annotations

import os
import tempfile
import uuid
from decimal import Decimal

# Settings are read at import time; point everything at throwaway resources first.
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RECEIPT_LOCAL_DIR"] = tempfile.mkdtemp(prefix="mcan-receipts-")
os.environ["EMAIL_FUNCTION_URL"] = ""
os.environ["SENDGRID_API_KEY"] = ""
os.environ["GCS_BUCKET_NAME"] = ""
os.environ["CLIENT_BASE_URL"] = "https://lodge.example.org"

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.api.deps import get_storage
from app.core.security import create_access_token, hash_password
from app.db.session import Base, SessionLocal, engine
from app.models.profile import Profile
from app.models.room import Room
from app.models.user import User
from app.services import email_service
from app.services.storage_service import LocalReceiptStorage


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def storage(tmp_path) -> LocalReceiptStorage:
    return LocalReceiptStorage(root=str(tmp_path / "receipts"), public_base_url="/media/receipts")


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def outbox(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    """Captures delivered emails instead of sending them."""
    sent: list[dict] = []

    def _send(to_email, subject, body):
        sent.append({"to": to_email, "subject": subject, "body": body})

    monkeypatch.setattr(email_service, "send_email", _send)
    return sent


@pytest.fixture
def failing_mail(monkeypatch: pytest.MonkeyPatch) -> None:
    def _send(to_email, subject, body):
        raise ConnectionError("smtp down")

    monkeypatch.setattr(email_service, "send_email", _send)


def make_profile(db, email: str, role: str = "user", status: str = "active",
                 password: str = "secret123", full_name: str = "Test Guest") -> Profile:
    uid = str(uuid.uuid4())
    db.add(User(id=uid, email=email, password_hash=hash_password(password)))
    profile = Profile(id=uid, full_name=full_name, email=email, phone="08030000000",
                      address="12 Garki Road, Abuja", gender="male", role=role, status=status)
    db.add(profile)
    db.commit()
    return profile


def make_room(db, name: str = "Brothers Hall A", price: str = "5000", available: bool = True) -> Room:
    room = Room(id=str(uuid.uuid4()), name=name, description="", capacity=4,
                price_per_night=Decimal(price), amenities_csv="Fan,Bunk beds", is_available=available)
    db.add(room)
    db.commit()
    return room


def auth(profile: Profile) -> dict:
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}


@pytest.fixture
def guest(db) -> Profile:
    return make_profile(db, "guest@example.org", full_name="Abdullahi Musa")


@pytest.fixture
def admin(db) -> Profile:
    return make_profile(db, "admin@example.org", role="admin", full_name="Lodge Admin")


@pytest.fixture
def room(db) -> Room:
    return make_room(db)
