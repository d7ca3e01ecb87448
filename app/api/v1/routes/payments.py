from __future__ import annotations
import logging
from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.errors import StorageError
from app.db.session import get_db
from app.api.deps import get_current_user, get_storage, http_error, require_privileged
from app.models.profile import Profile
from app.schemas.payments import (
    DecisionResult,
    PaymentSubmission,
    ReceiptDetailOut,
    ReceiptOut,
    RejectRequest,
    SubmissionOut,
)
from app.services import payment_service
from app.services.storage_service import ReceiptStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post("/payments", response_model=SubmissionOut, status_code=201)
def submit_payment(
    bookingId: str = Form(...),
    amount: Decimal = Form(...),
    transactionDate: datetime = Form(...),
    transactionReference: str = Form(...),
    bankName: str = Form(...),
    accountNumber: str = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: ReceiptStorage = Depends(get_storage),
    me: Profile = Depends(get_current_user),
):
    try:
        form = PaymentSubmission(
            bookingId=bookingId,
            amount=amount,
            transactionDate=transactionDate,
            transactionReference=transactionReference,
            bankName=bankName,
            accountNumber=accountNumber,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()])

    try:
        data = payment_service.read_receipt_upload(file.file, file.size)
        receipt, email_sent = payment_service.submit_payment(
            db, storage, me, form, file.filename, file.content_type, data,
        )
    except ValueError as e:
        raise http_error(e)
    except StorageError as e:
        logger.error("receipt submission for booking %s failed: %s", bookingId, e)
        raise HTTPException(status_code=503, detail="Could not store your receipt, please try again")
    return {"receipt": payment_service.receipt_out(receipt, profile=me), "emailSent": email_sent}


@router.get("/payments/mine", response_model=List[ReceiptOut])
def my_payments(db: Session = Depends(get_db), me: Profile = Depends(get_current_user)):
    return [payment_service.receipt_out(r, d, me) for r, d in payment_service.list_user_receipts(db, me.id)]


@router.get("/admin/payments/pending", response_model=List[ReceiptOut])
def pending_payments(limit: int = Query(100, ge=1, le=200), offset: int = Query(0, ge=0),
                     db: Session = Depends(get_db),
                     me: Profile = Depends(require_privileged)):
    rows = payment_service.list_pending(db, limit=limit, offset=offset)
    return [payment_service.receipt_out(r, d, p) for r, p, d in rows]


@router.get("/admin/payments/{receipt_id}", response_model=ReceiptDetailOut)
def payment_detail(receipt_id: str, db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        receipt = payment_service.get_receipt(db, receipt_id)
    except ValueError as e:
        raise http_error(e)
    history = payment_service.decision_history(db, receipt.id)
    out = payment_service.receipt_out(receipt, history[-1] if history else None, db.get(Profile, receipt.user_id))
    out["history"] = [payment_service.decision_out(d) for d in history]
    return out


@router.post("/admin/payments/{receipt_id}/approve", response_model=DecisionResult)
def approve_payment(receipt_id: str, db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        return payment_service.approve(db, receipt_id, me)
    except ValueError as e:
        raise http_error(e)


@router.post("/admin/payments/{receipt_id}/reject", response_model=DecisionResult)
def reject_payment(receipt_id: str, body: RejectRequest,
                   db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        return payment_service.reject(db, receipt_id, me, body.reason)
    except ValueError as e:
        raise http_error(e)
