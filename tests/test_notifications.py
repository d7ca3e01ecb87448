from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from app.core.config import settings
from app.models.email_log import EmailLog
from app.services import email_service
from app.services.notification_service import EmailTemplate, render, retry_failed, send_notification

PAYMENT = {
    "userName": "Abdullahi Musa",
    "bookingId": "b-1",
    "amount": Decimal("10000.00"),
    "transactionDate": datetime(2025, 1, 2, 10, 30),
    "reference": "JAIZ-778812",
}


def test_render_payment_received() -> None:
    subject, body = render(EmailTemplate.PAYMENT_RECEIVED, PAYMENT)
    assert subject == "Payment Receipt Submitted"
    assert body.startswith("Dear Abdullahi Musa,")
    assert "booking #b-1" in body
    assert "- Amount: ₦10000.00" in body
    assert "- Transaction Date: 2025-01-02" in body
    assert "- Reference: JAIZ-778812" in body


def test_render_status_change_closing_depends_on_status() -> None:
    _, active = render(EmailTemplate.ACCOUNT_STATUS_CHANGE, {"userName": "A", "status": "active"})
    _, disabled = render(EmailTemplate.ACCOUNT_STATUS_CHANGE, {"userName": "A", "status": "disabled"})
    assert "you can access all features" in active
    assert "done in error" in disabled


def test_render_missing_field() -> None:
    with pytest.raises(ValueError):
        render(EmailTemplate.PAYMENT_REJECTED, PAYMENT)


def test_render_unknown_template() -> None:
    with pytest.raises(ValueError):
        render("WELCOME", {})


def test_send_logs_success(db, outbox) -> None:
    assert send_notification(db, EmailTemplate.PAYMENT_APPROVED, "guest@example.org", PAYMENT, "b-1") is True
    log = db.query(EmailLog).one()
    assert (log.status, log.template, log.related_booking_id, log.attempt) == ("sent", "PAYMENT_APPROVED", "b-1", 1)
    assert outbox[0]["to"] == "guest@example.org"


def test_send_failure_is_logged_not_raised(db, failing_mail) -> None:
    assert send_notification(db, EmailTemplate.PAYMENT_APPROVED, "guest@example.org", PAYMENT) is False
    log = db.query(EmailLog).one()
    assert log.status == "failed"
    assert "ConnectionError" in log.error


def test_retry_appends_attempts_until_ceiling(db, monkeypatch) -> None:
    calls: list[str] = []

    def _down(to_email, subject, body):
        calls.append(to_email)
        raise ConnectionError("smtp down")

    monkeypatch.setattr(email_service, "send_email", _down)
    send_notification(db, EmailTemplate.PAYMENT_RECEIVED, "guest@example.org", PAYMENT)

    assert retry_failed(db, max_attempts=3) == {"processed": 1, "sent": 0, "failed": 1}
    assert retry_failed(db, max_attempts=3) == {"processed": 1, "sent": 0, "failed": 1}
    assert retry_failed(db, max_attempts=3) == {"processed": 0, "sent": 0, "failed": 0}
    assert len(calls) == 3

    rows = db.query(EmailLog).order_by(EmailLog.attempt).all()
    assert [r.attempt for r in rows] == [1, 2, 3]
    assert rows[1].retry_of_id == rows[0].id and rows[2].retry_of_id == rows[0].id


def test_retry_stops_after_success(db, monkeypatch, outbox) -> None:
    def _down(to_email, subject, body):
        raise ConnectionError("smtp down")

    with monkeypatch.context() as m:
        m.setattr(email_service, "send_email", _down)
        send_notification(db, EmailTemplate.PASSWORD_RESET, "guest@example.org",
                          {"userName": "A", "resetLink": "https://x/reset-password?token=t"})

    assert retry_failed(db)["sent"] == 1
    assert retry_failed(db)["processed"] == 0
    assert len(outbox) == 1


def test_worker_job_uses_its_own_session(db, failing_mail) -> None:
    from app.tasks.worker_jobs import retry_failed_emails

    send_notification(db, EmailTemplate.ACCOUNT_STATUS_CHANGE, "guest@example.org",
                      {"userName": "A", "status": "disabled"})
    assert retry_failed_emails(limit=10) == {"processed": 1, "sent": 0, "failed": 1}


def test_sendgrid_payload_is_plain_text(monkeypatch) -> None:
    sent = []

    class Reply:
        status_code = 202
        text = ""

    def _post(url, json=None, headers=None, timeout=None):
        sent.append((url, json, headers))
        return Reply()

    monkeypatch.setattr(settings, "SENDGRID_API_KEY", "SG.test")
    monkeypatch.setattr(email_service.requests, "post", _post)
    email_service.send_email("guest@example.org", "Payment Receipt Submitted", "Thank you")

    url, payload, headers = sent[0]
    assert url == "https://api.sendgrid.com/v3/mail/send"
    assert headers["Authorization"] == "Bearer SG.test"
    assert payload["personalizations"] == [{"to": [{"email": "guest@example.org"}]}]
    assert payload["content"] == [{"type": "text/plain", "value": "Thank you"}]
    assert "attachments" not in payload
