from __future__ import annotations

import inspect
import io
import os
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.api.v1.routes import payments as payment_routes
from app.core.config import settings
from app.core.errors import ConflictError, StorageError
from app.models.booking import Booking
from app.models.email_log import EmailLog
from app.models.payment_decision import PaymentDecision
from app.models.payment_receipt import PaymentReceipt
from app.schemas.payments import PaymentSubmission
from app.services import payment_service
from app.services.booking_service import create_booking
from app.services.storage_service import LocalReceiptStorage
from conftest import auth, make_profile

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _form(booking_id: str, **overrides) -> dict:
    data = {
        "bookingId": booking_id,
        "amount": "10000",
        "transactionDate": "2025-01-02T10:00:00",
        "transactionReference": "JAIZ-778812",
        "bankName": "Jaiz Bank",
        "accountNumber": "0123456789",
    }
    data.update(overrides)
    return data


@pytest.fixture
def booking(db, guest, room) -> Booking:
    return create_booking(db, guest, room.id, date(2025, 1, 1), date(2025, 1, 3))


@pytest.fixture
def receipt(db, storage, guest, booking, outbox):
    form = PaymentSubmission(**_form(booking.id))
    r, _ = payment_service.submit_payment(db, storage, guest, form, "receipt.png", "image/png", PNG)
    outbox.clear()
    return r


def _stored_files(storage: LocalReceiptStorage) -> list[str]:
    if not os.path.isdir(storage.root):
        return []
    return [f for _, _, files in os.walk(storage.root) for f in files]


def test_submit_stores_file_and_pending_entry(client, db, storage, guest, booking, outbox) -> None:
    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("receipt.png", PNG, "image/png")})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["emailSent"] is True
    receipt = body["receipt"]
    assert receipt["status"] == "pending"
    assert receipt["receiptUrl"].startswith(f"/media/receipts/{guest.id}/")
    assert receipt["receiptUrl"].endswith(".png")
    assert len(_stored_files(storage)) == 1

    history = payment_service.decision_history(db, receipt["id"])
    assert [d.status for d in history] == ["pending"]
    assert outbox[0]["subject"] == "Payment Receipt Submitted"
    assert "₦10000" in outbox[0]["body"]


def test_submit_rejects_bad_file_type(client, guest, booking, outbox) -> None:
    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400


def test_submit_rejects_future_transaction_date(client, guest, booking, outbox) -> None:
    tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id, transactionDate=tomorrow),
                    files={"file": ("receipt.png", PNG, "image/png")})
    assert r.status_code == 422


def test_submit_for_someone_elses_booking(client, db, booking, outbox) -> None:
    stranger = make_profile(db, "stranger@example.org")
    r = client.post("/api/v1/payments", headers=auth(stranger), data=_form(booking.id),
                    files={"file": ("receipt.png", PNG, "image/png")})
    assert r.status_code == 404


def test_insert_failure_removes_uploaded_object(db, storage, guest, booking, monkeypatch) -> None:
    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)
    form = PaymentSubmission(**_form(booking.id))
    with pytest.raises(OperationalError):
        payment_service.submit_payment(db, storage, guest, form, "receipt.png", "image/png", PNG)
    assert _stored_files(storage) == []


def test_failed_cleanup_does_not_mask_original_error(db, tmp_path, guest, booking, monkeypatch) -> None:
    class StickyStorage(LocalReceiptStorage):
        def remove(self, paths):
            raise PermissionError("bucket is read-only")

    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    storage = StickyStorage(root=str(tmp_path / "sticky"))
    monkeypatch.setattr(db, "commit", broken_commit)
    form = PaymentSubmission(**_form(booking.id))
    with pytest.raises(OperationalError):
        payment_service.submit_payment(db, storage, guest, form, "receipt.png", "image/png", PNG)


def test_remove_is_idempotent(storage) -> None:
    storage.upload("u1/1.png", PNG, "image/png")
    storage.remove(["u1/1.png"])
    storage.remove(["u1/1.png"])
    assert not storage.exists("u1/1.png")


def test_receipt_without_decision_is_pending(db, receipt) -> None:
    db.query(PaymentDecision).delete()
    db.commit()
    assert payment_service.current_status(db, receipt.id) == "pending"
    assert [r.id for r, _, _ in payment_service.list_pending(db)] == [receipt.id]


def test_pending_queue_over_http(client, admin, guest, receipt) -> None:
    r = client.get("/api/v1/admin/payments/pending", headers=auth(admin))
    assert r.status_code == 200
    items = r.json()
    assert [i["id"] for i in items] == [receipt.id]
    assert items[0]["fullName"] == guest.full_name
    assert items[0]["email"] == guest.email


def test_approve_marks_booking_paid_and_active(client, db, admin, receipt, booking, outbox) -> None:
    r = client.post(f"/api/v1/admin/payments/{receipt.id}/approve", headers=auth(admin))
    assert r.status_code == 200, r.text
    assert r.json() == {"receiptId": receipt.id, "status": "approved", "bookingStatus": "active",
                        "paymentStatus": "paid", "emailSent": True}

    db.expire_all()
    b = db.get(Booking, booking.id)
    assert (b.payment_status, b.status) == ("paid", "active")
    assert payment_service.current_status(db, receipt.id) == "approved"
    assert payment_service.list_pending(db) == []

    logs = db.query(EmailLog).filter(EmailLog.template == "PAYMENT_APPROVED").all()
    assert [(l.status, l.to_email) for l in logs] == [("sent", "guest@example.org")]
    assert outbox[0]["subject"] == "Payment Verified Successfully"


def test_approval_stands_when_email_fails(client, db, admin, receipt, booking, failing_mail) -> None:
    r = client.post(f"/api/v1/admin/payments/{receipt.id}/approve", headers=auth(admin))
    assert r.status_code == 200
    assert r.json()["emailSent"] is False

    db.expire_all()
    assert db.get(Booking, booking.id).payment_status == "paid"
    log = db.query(EmailLog).filter(EmailLog.template == "PAYMENT_APPROVED").one()
    assert log.status == "failed"
    assert "smtp down" in log.error


def test_reject_requires_reason(client, db, admin, receipt) -> None:
    r = client.post(f"/api/v1/admin/payments/{receipt.id}/reject", headers=auth(admin), json={"reason": "   "})
    assert r.status_code == 422
    r = client.post(f"/api/v1/admin/payments/{receipt.id}/reject", headers=auth(admin), json={})
    assert r.status_code == 422
    assert [d.status for d in payment_service.decision_history(db, receipt.id)] == ["pending"]


def test_reject_blank_reason_in_service_writes_nothing(db, admin, receipt) -> None:
    with pytest.raises(ValueError):
        payment_service.reject(db, receipt.id, admin, "  ")
    assert len(payment_service.decision_history(db, receipt.id)) == 1


def test_reject_leaves_booking_untouched(client, db, admin, receipt, booking, outbox) -> None:
    r = client.post(f"/api/v1/admin/payments/{receipt.id}/reject", headers=auth(admin),
                    json={"reason": "Amount does not match the transfer"})
    assert r.status_code == 200
    assert r.json()["status"] == "rejected"

    db.expire_all()
    b = db.get(Booking, booking.id)
    assert (b.status, b.payment_status) == ("pending", "pending")
    latest = payment_service.latest_decision(db, receipt.id)
    assert latest.rejection_reason == "Amount does not match the transfer"
    assert latest.decided_by_user_id == admin.id
    assert "Reason: Amount does not match the transfer" in outbox[0]["body"]


def test_terminal_decision_cannot_be_changed(client, db, admin, receipt, outbox) -> None:
    assert client.post(f"/api/v1/admin/payments/{receipt.id}/approve", headers=auth(admin)).status_code == 200
    r = client.post(f"/api/v1/admin/payments/{receipt.id}/reject", headers=auth(admin), json={"reason": "late"})
    assert r.status_code == 409
    with pytest.raises(ConflictError):
        payment_service.approve(db, receipt.id, admin)
    assert [d.status for d in payment_service.decision_history(db, receipt.id)] == ["pending", "approved"]


def test_resubmission_after_rejection(client, db, admin, guest, booking, receipt, outbox) -> None:
    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("again.pdf", b"%PDF-1.4 receipt", "application/pdf")})
    assert r.status_code == 409  # first receipt still awaiting verification

    payment_service.reject(db, receipt.id, admin, "Blurry image")
    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("again.pdf", b"%PDF-1.4 receipt", "application/pdf")})
    assert r.status_code == 201, r.text

    mine = client.get("/api/v1/payments/mine", headers=auth(guest)).json()
    assert sorted(m["status"] for m in mine) == ["pending", "rejected"]
    rejected = next(m for m in mine if m["status"] == "rejected")
    assert rejected["rejectionReason"] == "Blurry image"


def test_payment_detail_shows_history(client, admin, receipt) -> None:
    r = client.get(f"/api/v1/admin/payments/{receipt.id}", headers=auth(admin))
    assert r.status_code == 200
    assert [h["status"] for h in r.json()["history"]] == ["pending"]
    assert client.get("/api/v1/admin/payments/nope", headers=auth(admin)).status_code == 404


def test_submit_size_limit_is_inclusive(client, db, storage, guest, booking, outbox, monkeypatch) -> None:
    monkeypatch.setattr(settings, "RECEIPT_MAX_BYTES", 1024)
    at_limit = PNG + b"\x00" * (1024 - len(PNG))

    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("big.png", at_limit + b"\x00", "image/png")})
    assert r.status_code == 400
    assert _stored_files(storage) == []
    assert db.query(PaymentReceipt).count() == 0

    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("exact.png", at_limit, "image/png")})
    assert r.status_code == 201, r.text
    assert len(_stored_files(storage)) == 1


def test_read_receipt_upload_stops_at_limit(monkeypatch) -> None:
    monkeypatch.setattr(settings, "RECEIPT_MAX_BYTES", 16)
    requested = []

    class Stream(io.BytesIO):
        def read(self, size=-1):
            requested.append(size)
            return super().read(size)

    assert payment_service.read_receipt_upload(Stream(b"x" * 16)) == b"x" * 16
    with pytest.raises(ValueError):
        payment_service.read_receipt_upload(Stream(b"x" * 4096))
    assert requested == [17, 17]

    with pytest.raises(ValueError):
        payment_service.read_receipt_upload(Stream(b"x"), declared_size=17)
    assert requested == [17, 17]


def test_submit_handler_runs_in_threadpool() -> None:
    assert not inspect.iscoroutinefunction(payment_routes.submit_payment)


def test_submission_stands_when_email_fails(client, db, guest, booking, failing_mail) -> None:
    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("receipt.png", PNG, "image/png")})
    assert r.status_code == 201, r.text
    assert r.json()["emailSent"] is False
    assert r.json()["receipt"]["status"] == "pending"

    log = db.query(EmailLog).filter(EmailLog.template == "PAYMENT_RECEIVED").one()
    assert log.status == "failed"


def test_local_storage_refuses_to_overwrite(storage) -> None:
    storage.upload("u1/1.png", PNG, "image/png")
    with pytest.raises(StorageError):
        storage.upload("u1/1.png", b"other", "image/png")
    with open(os.path.join(storage.root, "u1", "1.png"), "rb") as f:
        assert f.read() == PNG


def test_storage_failure_returns_503(client, db, storage, guest, booking, outbox, monkeypatch) -> None:
    monkeypatch.setattr(payment_service, "receipt_object_path", lambda *a, **kw: f"{guest.id}/1.png")
    storage.upload(f"{guest.id}/1.png", PNG, "image/png")

    r = client.post("/api/v1/payments", headers=auth(guest), data=_form(booking.id),
                    files={"file": ("receipt.png", PNG, "image/png")})
    assert r.status_code == 503
    assert db.query(PaymentReceipt).count() == 0
    assert outbox == []
