"""Templated guest notifications.

Every send attempt, successful or not, is written to email_logs. A failed send
never raises to the caller: the business action that triggered it stands.
"""
from __future__ import annotations

import enum
import json
import logging
import uuid
from datetime import date, datetime

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.email_log import EmailLog
from app.services import email_service

logger = logging.getLogger(__name__)


class EmailTemplate(str, enum.Enum):
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_APPROVED = "PAYMENT_APPROVED"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    PASSWORD_RESET = "PASSWORD_RESET"
    ACCOUNT_STATUS_CHANGE = "ACCOUNT_STATUS_CHANGE"


def _fmt_date(value) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return text


def _payment_details(d: dict) -> list[str]:
    return [
        "Payment Details:",
        f"- Amount: {settings.CURRENCY_SYMBOL}{d['amount']}",
        f"- Transaction Date: {_fmt_date(d['transactionDate'])}",
        f"- Reference: {d['reference']}",
    ]


def _payment_received(d: dict) -> list[str]:
    return [
        f"Dear {d['userName']},",
        "",
        f"We have received your payment receipt for booking #{d['bookingId']}.",
        "Our team will verify your payment shortly.",
        "",
        *_payment_details(d),
        "",
        "We will notify you once the verification is complete.",
        "",
        "Thank you for your business.",
    ]


def _payment_approved(d: dict) -> list[str]:
    return [
        f"Dear {d['userName']},",
        "",
        f"Your payment for booking #{d['bookingId']} has been verified and approved.",
        "",
        *_payment_details(d),
        "",
        "Your booking is now confirmed. Thank you for choosing our service.",
    ]


def _payment_rejected(d: dict) -> list[str]:
    return [
        f"Dear {d['userName']},",
        "",
        f"Unfortunately, we could not verify your payment for booking #{d['bookingId']}.",
        "",
        f"Reason: {d['rejectionReason']}",
        "",
        "Please submit a new payment receipt or contact our support team for assistance.",
        "",
        *_payment_details(d),
    ]


def _password_reset(d: dict) -> list[str]:
    return [
        f"Dear {d['userName']},",
        "",
        "A password reset has been initiated for your account.",
        "Please use the following link to reset your password:",
        "",
        d["resetLink"],
        "",
        "This link will expire in 1 hour.",
        "",
        "If you did not request this password reset, please ignore this email.",
    ]


def _account_status_change(d: dict) -> list[str]:
    if d["status"] == "active":
        closing = "Your account is now active and you can access all features."
    else:
        closing = "If you believe this was done in error, please contact our support team."
    return [
        f"Dear {d['userName']},",
        "",
        f"Your account status has been updated to: {d['status']}",
        "",
        closing,
        "",
        "For any questions, please contact our support team.",
    ]


TEMPLATES = {
    EmailTemplate.PAYMENT_RECEIVED: ("Payment Receipt Submitted", _payment_received),
    EmailTemplate.PAYMENT_APPROVED: ("Payment Verified Successfully", _payment_approved),
    EmailTemplate.PAYMENT_REJECTED: ("Payment Verification Failed", _payment_rejected),
    EmailTemplate.PASSWORD_RESET: ("Password Reset Request", _password_reset),
    EmailTemplate.ACCOUNT_STATUS_CHANGE: ("Account Status Update", _account_status_change),
}


def render(template: EmailTemplate, data: dict) -> tuple[str, str]:
    """Return (subject, body). Raises ValueError for an unknown template or missing field."""
    try:
        subject, build = TEMPLATES[EmailTemplate(template)]
    except (KeyError, ValueError) as e:
        raise ValueError(f'Email template "{template}" not found') from e
    try:
        return subject, "\n".join(build(data)) + "\n"
    except KeyError as e:
        raise ValueError(f"missing template field {e.args[0]!r} for {template}") from e


def _log_attempt(db: Session, *, template: str, to_email: str, subject: str, body: str, data: dict,
                 ok: bool, error: str | None, related_booking_id: str, attempt: int = 1,
                 retry_of_id: str | None = None) -> EmailLog:
    row = EmailLog(
        id=str(uuid.uuid4()),
        template=str(template),
        to_email=to_email,
        subject=subject,
        body=body,
        data_json=json.dumps(data, ensure_ascii=False, default=str),
        status="sent" if ok else "failed",
        error=error,
        related_booking_id=related_booking_id or "",
        attempt=attempt,
        retry_of_id=retry_of_id,
    )
    db.add(row)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("could not write email log for %s to %s", template, to_email)
    return row


def send_notification(db: Session, template: EmailTemplate, to_email: str, data: dict,
                      related_booking_id: str = "") -> bool:
    """Render, send and log. Returns True when delivered; False (logged) otherwise."""
    template = EmailTemplate(template)
    try:
        subject, body = render(template, data)
    except ValueError as e:
        logger.error("cannot render %s for %s: %s", template.value, to_email, e)
        _log_attempt(db, template=template.value, to_email=to_email, subject=TEMPLATES[template][0], body="",
                     data=data, ok=False, error=str(e), related_booking_id=related_booking_id)
        return False

    try:
        email_service.send_email(to_email, subject, body)
    except Exception as e:
        logger.warning("%s email to %s failed: %s", template.value, to_email, e)
        _log_attempt(db, template=template.value, to_email=to_email, subject=subject, body=body, data=data,
                     ok=False, error=f"{type(e).__name__}: {e}", related_booking_id=related_booking_id)
        return False

    _log_attempt(db, template=template.value, to_email=to_email, subject=subject, body=body, data=data,
                 ok=True, error=None, related_booking_id=related_booking_id)
    logger.info("%s email sent to %s", template.value, to_email)
    return True


def retry_failed(db: Session, limit: int = 50, max_attempts: int | None = None) -> dict:
    """Re-send failed chains that have no success yet and are under the attempt ceiling.

    A chain is the first attempt plus every row whose retry_of_id points at it.
    Each retry inserts a new row; earlier rows are left untouched.
    """
    max_attempts = max_attempts or settings.EMAIL_MAX_ATTEMPTS
    chain_id = func.coalesce(EmailLog.retry_of_id, EmailLog.id)
    chains = (
        db.query(
            chain_id.label("chain_id"),
            func.max(EmailLog.attempt).label("attempts"),
            func.sum(case((EmailLog.status == "sent", 1), else_=0)).label("sent"),
        )
        .group_by(chain_id)
        .all()
    )
    todo = [c for c in chains if not c.sent and c.attempts < max_attempts][:limit]

    sent, failed = 0, 0
    for c in todo:
        first = db.get(EmailLog, c.chain_id)
        if not first or not first.body:
            continue
        data = json.loads(first.data_json or "{}")
        try:
            email_service.send_email(first.to_email, first.subject, first.body)
            ok, error = True, None
            sent += 1
        except Exception as e:
            ok, error = False, f"{type(e).__name__}: {e}"
            failed += 1
        _log_attempt(db, template=first.template, to_email=first.to_email, subject=first.subject, body=first.body,
                     data=data, ok=ok, error=error, related_booking_id=first.related_booking_id,
                     attempt=c.attempts + 1, retry_of_id=first.id)
    return {"processed": sent + failed, "sent": sent, "failed": failed}
