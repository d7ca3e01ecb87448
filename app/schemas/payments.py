from datetime import datetime, timezone
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

ALLOWED_RECEIPT_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "application/pdf": "pdf",
}


class PaymentSubmission(BaseModel):
    """Form fields of a bank-transfer receipt (the file travels separately)."""
    bookingId: str
    amount: Decimal = Field(gt=0)
    transactionDate: datetime
    transactionReference: str = Field(min_length=1)
    bankName: str = Field(min_length=1)
    accountNumber: str = Field(min_length=1)

    @field_validator("transactionDate")
    @classmethod
    def _not_in_future(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v > datetime.now(timezone.utc):
            raise ValueError("transaction date cannot be in the future")
        return v

    @field_validator("transactionReference", "bankName", "accountNumber")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field is required")
        return v


class ReceiptOut(BaseModel):
    id: str
    bookingId: str
    userId: str
    amount: Decimal
    transactionDate: str
    transactionReference: str
    bankName: str
    accountNumber: str
    receiptUrl: str
    createdAt: str
    status: str = "pending"
    rejectionReason: Optional[str] = None
    verificationDate: Optional[str] = None
    fullName: Optional[str] = None
    email: Optional[str] = None


class SubmissionOut(BaseModel):
    receipt: ReceiptOut
    emailSent: bool


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1)

    @field_validator("reason")
    @classmethod
    def _non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("rejection reason is required")
        return v


class DecisionOut(BaseModel):
    status: str
    rejectionReason: Optional[str] = None
    decidedBy: Optional[str] = None
    verificationDate: Optional[str] = None
    createdAt: str


class DecisionResult(BaseModel):
    receiptId: str
    status: str
    bookingStatus: str
    paymentStatus: str
    emailSent: bool


class ReceiptDetailOut(ReceiptOut):
    history: List[DecisionOut] = []


class BankDetailsOut(BaseModel):
    bank: str
    account: str
    name: str
