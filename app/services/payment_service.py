"""Bank-transfer receipts and their verification.

Submission: upload the receipt file, resolve its public URL, insert the receipt
row together with the first ``pending`` decision. A failed insert removes the
uploaded object again.

Verification: decisions are appended to ``payment_decisions``; the newest entry
per receipt is its current status. ``approved`` and ``rejected`` are terminal.
Approval and the booking update commit together. Guest emails go out only
after commit and never undo the decision.
"""
from __future__ import annotations

import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import BinaryIO

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, NotFoundError
from app.models.booking import Booking
from app.models.payment_decision import PaymentDecision, TERMINAL_STATUSES
from app.models.payment_receipt import PaymentReceipt
from app.models.profile import Profile
from app.schemas.payments import ALLOWED_RECEIPT_TYPES, PaymentSubmission
from app.services.audit_service import log_audit
from app.services.notification_service import EmailTemplate, send_notification
from app.services.storage_service import ReceiptStorage

logger = logging.getLogger(__name__)


def validate_receipt_file(content_type: str | None, size: int) -> str:
    """Return the normalised content type or raise ValueError."""
    ct = (content_type or "").split(";")[0].strip().lower()
    if ct not in ALLOWED_RECEIPT_TYPES:
        raise ValueError("Please upload a valid image (JPG, PNG) or PDF file")
    if size <= 0:
        raise ValueError("Please upload your payment receipt")
    if size > settings.RECEIPT_MAX_BYTES:
        raise ValueError(_too_large_message())
    return ct


def _too_large_message() -> str:
    return f"File size should not exceed {settings.RECEIPT_MAX_BYTES // (1024 * 1024)}MB"


def read_receipt_upload(stream: BinaryIO, declared_size: int | None = None) -> bytes:
    """Read an uploaded receipt, never more than RECEIPT_MAX_BYTES + 1 bytes.

    A declared size over the limit is refused before anything is read. The
    extra byte lets the size check reject streams that under-declare.
    """
    limit = settings.RECEIPT_MAX_BYTES
    if declared_size is not None and declared_size > limit:
        raise ValueError(_too_large_message())
    data = stream.read(limit + 1)
    if len(data) > limit:
        raise ValueError(_too_large_message())
    return data


def receipt_object_path(user_id: str, filename: str | None, content_type: str, now_ms: int | None = None) -> str:
    """<user id>/<unix millis>.<ext>"""
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    if ext not in ("jpg", "jpeg", "png", "pdf"):
        ext = ALLOWED_RECEIPT_TYPES[content_type]
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{user_id}/{stamp}.{ext}"


def _remove_upload(storage: ReceiptStorage, path: str) -> None:
    try:
        storage.remove([path])
        logger.info("removed orphaned receipt object %s", path)
    except Exception:
        logger.warning("could not remove orphaned receipt object %s", path, exc_info=True)


def _latest_subquery(db: Session):
    return (
        db.query(PaymentDecision.payment_receipt_id.label("receipt_id"), func.max(PaymentDecision.seq).label("seq"))
        .group_by(PaymentDecision.payment_receipt_id)
        .subquery()
    )


def latest_decision(db: Session, receipt_id: str) -> PaymentDecision | None:
    return (
        db.query(PaymentDecision)
        .filter(PaymentDecision.payment_receipt_id == receipt_id)
        .order_by(PaymentDecision.seq.desc())
        .first()
    )


def current_status(db: Session, receipt_id: str) -> str:
    d = latest_decision(db, receipt_id)
    return d.status if d else "pending"


def decision_history(db: Session, receipt_id: str) -> list[PaymentDecision]:
    return (
        db.query(PaymentDecision)
        .filter(PaymentDecision.payment_receipt_id == receipt_id)
        .order_by(PaymentDecision.seq.asc())
        .all()
    )


def _has_open_receipt(db: Session, booking_id: str) -> bool:
    latest = _latest_subquery(db)
    row = (
        db.query(PaymentReceipt.id)
        .select_from(PaymentReceipt)
        .outerjoin(latest, latest.c.receipt_id == PaymentReceipt.id)
        .outerjoin(PaymentDecision, and_(PaymentDecision.payment_receipt_id == PaymentReceipt.id,
                                         PaymentDecision.seq == latest.c.seq))
        .filter(PaymentReceipt.booking_id == booking_id)
        .filter(or_(PaymentDecision.id.is_(None), PaymentDecision.status == "pending"))
        .first()
    )
    return row is not None


def submit_payment(db: Session, storage: ReceiptStorage, submitter: Profile, form: PaymentSubmission,
                   filename: str | None, content_type: str | None, data: bytes) -> tuple[PaymentReceipt, bool]:
    """Store the receipt and record it. Returns (receipt, email_sent)."""
    ct = validate_receipt_file(content_type, len(data or b""))

    booking = db.get(Booking, form.bookingId)
    if not booking or booking.user_id != submitter.id:
        raise NotFoundError("booking not found")
    if booking.payment_status == "paid":
        raise ConflictError("booking is already paid")
    if _has_open_receipt(db, booking.id):
        raise ConflictError("a receipt for this booking is already awaiting verification")

    path = receipt_object_path(submitter.id, filename, ct)
    storage.upload(path, data, ct)

    try:
        url = storage.public_url(path)
        receipt = PaymentReceipt(
            id=str(uuid.uuid4()),
            user_id=submitter.id,
            booking_id=booking.id,
            amount=form.amount,
            transaction_date=form.transactionDate,
            transaction_reference=form.transactionReference,
            bank_name=form.bankName,
            account_number=form.accountNumber,
            receipt_path=path,
            receipt_url=url,
            content_type=ct,
            storage_backend=storage.backend,
        )
        db.add(receipt)
        db.flush()
        db.add(PaymentDecision(id=str(uuid.uuid4()), payment_receipt_id=receipt.id, seq=1, status="pending"))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("payment receipt insert failed for booking %s", booking.id)
        _remove_upload(storage, path)
        raise

    db.refresh(receipt)
    logger.info("receipt %s submitted for booking %s", receipt.id, booking.id)

    email_sent = send_notification(db, EmailTemplate.PAYMENT_RECEIVED, submitter.email, {
        "userName": submitter.full_name,
        "bookingId": booking.id,
        "amount": receipt.amount,
        "transactionDate": receipt.transaction_date,
        "reference": receipt.transaction_reference,
    }, related_booking_id=booking.id)
    return receipt, email_sent


def list_pending(db: Session, limit: int = 100, offset: int = 0) -> list[tuple[PaymentReceipt, Profile | None, PaymentDecision | None]]:
    """Receipts with no decision, or whose newest decision is pending. Newest first."""
    latest = _latest_subquery(db)
    return (
        db.query(PaymentReceipt, Profile, PaymentDecision)
        .outerjoin(Profile, Profile.id == PaymentReceipt.user_id)
        .outerjoin(latest, latest.c.receipt_id == PaymentReceipt.id)
        .outerjoin(PaymentDecision, and_(PaymentDecision.payment_receipt_id == PaymentReceipt.id,
                                         PaymentDecision.seq == latest.c.seq))
        .filter(or_(PaymentDecision.id.is_(None), PaymentDecision.status == "pending"))
        .order_by(PaymentReceipt.created_at.desc())
        .limit(min(limit, 200))
        .offset(max(offset, 0))
        .all()
    )


def count_pending(db: Session) -> int:
    latest = _latest_subquery(db)
    return (
        db.query(func.count(PaymentReceipt.id))
        .select_from(PaymentReceipt)
        .outerjoin(latest, latest.c.receipt_id == PaymentReceipt.id)
        .outerjoin(PaymentDecision, and_(PaymentDecision.payment_receipt_id == PaymentReceipt.id,
                                         PaymentDecision.seq == latest.c.seq))
        .filter(or_(PaymentDecision.id.is_(None), PaymentDecision.status == "pending"))
        .scalar()
    ) or 0


def list_user_receipts(db: Session, user_id: str) -> list[tuple[PaymentReceipt, PaymentDecision | None]]:
    receipts = (
        db.query(PaymentReceipt)
        .filter(PaymentReceipt.user_id == user_id)
        .order_by(PaymentReceipt.created_at.desc())
        .all()
    )
    return [(r, latest_decision(db, r.id)) for r in receipts]


def get_receipt(db: Session, receipt_id: str) -> PaymentReceipt:
    r = db.get(PaymentReceipt, receipt_id)
    if not r:
        raise NotFoundError("receipt not found")
    return r


def _lock_receipt(db: Session, receipt_id: str) -> PaymentReceipt:
    receipt = db.execute(
        select(PaymentReceipt).where(PaymentReceipt.id == receipt_id).with_for_update()
    ).scalar_one_or_none()
    if not receipt:
        raise NotFoundError("receipt not found")
    return receipt


def _append_decision(db: Session, receipt: PaymentReceipt, actor: Profile, status: str,
                     reason: str | None = None) -> PaymentDecision:
    current = latest_decision(db, receipt.id)
    if current and current.status in TERMINAL_STATUSES:
        raise ConflictError(f"payment already {current.status}")
    decision = PaymentDecision(
        id=str(uuid.uuid4()),
        payment_receipt_id=receipt.id,
        seq=(current.seq + 1) if current else 1,
        status=status,
        rejection_reason=reason,
        decided_by_user_id=actor.id,
        verification_date=datetime.now(timezone.utc),
    )
    db.add(decision)
    return decision


def _commit_decision(db: Session, receipt_id: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        # another admin appended first (unique receipt/seq)
        db.rollback()
        raise ConflictError("payment was decided concurrently; reload and retry") from e
    except SQLAlchemyError:
        db.rollback()
        logger.exception("decision commit failed for receipt %s", receipt_id)
        raise


def _email_data(receipt: PaymentReceipt, guest: Profile) -> dict:
    return {
        "userName": guest.full_name,
        "bookingId": receipt.booking_id,
        "amount": receipt.amount,
        "transactionDate": receipt.transaction_date,
        "reference": receipt.transaction_reference,
    }


def approve(db: Session, receipt_id: str, actor: Profile) -> dict:
    """Approve a receipt: decision + booking paid/active in one commit, then the guest email."""
    try:
        receipt = _lock_receipt(db, receipt_id)
        booking = db.execute(
            select(Booking).where(Booking.id == receipt.booking_id).with_for_update()
        ).scalar_one_or_none()
        if not booking:
            raise NotFoundError("booking for receipt not found")
        _append_decision(db, receipt, actor, "approved")
        booking.payment_status = "paid"
        booking.status = "active"
        log_audit(db, actor.id, "payment.approve", "payment_receipt", receipt.id,
                  {"bookingId": booking.id, "amount": receipt.amount})
    except ValueError:
        db.rollback()
        raise
    _commit_decision(db, receipt.id)
    logger.info("receipt %s approved by %s; booking %s paid", receipt.id, actor.id, booking.id)

    guest = db.get(Profile, receipt.user_id)
    email_sent = False
    if guest:
        email_sent = send_notification(db, EmailTemplate.PAYMENT_APPROVED, guest.email,
                                       _email_data(receipt, guest), related_booking_id=booking.id)
    return {
        "receiptId": receipt.id,
        "status": "approved",
        "bookingStatus": booking.status,
        "paymentStatus": booking.payment_status,
        "emailSent": email_sent,
    }


def reject(db: Session, receipt_id: str, actor: Profile, reason: str | None) -> dict:
    """Reject a receipt with a reason. The booking is left as it is."""
    reason = (reason or "").strip()
    if not reason:
        raise ValueError("rejection reason is required")
    try:
        receipt = _lock_receipt(db, receipt_id)
        _append_decision(db, receipt, actor, "rejected", reason)
        log_audit(db, actor.id, "payment.reject", "payment_receipt", receipt.id,
                  {"bookingId": receipt.booking_id, "reason": reason})
    except ValueError:
        db.rollback()
        raise
    _commit_decision(db, receipt.id)
    logger.info("receipt %s rejected by %s", receipt.id, actor.id)

    booking = db.get(Booking, receipt.booking_id)
    guest = db.get(Profile, receipt.user_id)
    email_sent = False
    if guest:
        email_sent = send_notification(db, EmailTemplate.PAYMENT_REJECTED, guest.email,
                                       {**_email_data(receipt, guest), "rejectionReason": reason},
                                       related_booking_id=receipt.booking_id)
    return {
        "receiptId": receipt.id,
        "status": "rejected",
        "bookingStatus": booking.status if booking else "",
        "paymentStatus": booking.payment_status if booking else "",
        "emailSent": email_sent,
    }


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def receipt_out(r: PaymentReceipt, decision: PaymentDecision | None = None, profile: Profile | None = None) -> dict:
    return {
        "id": r.id,
        "bookingId": r.booking_id,
        "userId": r.user_id,
        "amount": r.amount,
        "transactionDate": _iso(r.transaction_date),
        "transactionReference": r.transaction_reference,
        "bankName": r.bank_name,
        "accountNumber": r.account_number,
        "receiptUrl": r.receipt_url,
        "createdAt": _iso(r.created_at),
        "status": decision.status if decision else "pending",
        "rejectionReason": decision.rejection_reason if decision else None,
        "verificationDate": _iso(decision.verification_date) if decision else None,
        "fullName": profile.full_name if profile else None,
        "email": profile.email if profile else None,
    }


def decision_out(d: PaymentDecision) -> dict:
    return {
        "status": d.status,
        "rejectionReason": d.rejection_reason,
        "decidedBy": d.decided_by_user_id,
        "verificationDate": _iso(d.verification_date),
        "createdAt": _iso(d.created_at),
    }
