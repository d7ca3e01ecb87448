from decimal import Decimal
from sqlalchemy import String, DateTime, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class PaymentReceipt(Base):
    """Bank-transfer proof submitted by a guest. Never updated after insert."""
    __tablename__ = "payment_receipts"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payment_receipts_amount_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    booking_id: Mapped[str] = mapped_column(String(36), index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    transaction_reference: Mapped[str] = mapped_column(String(120))
    bank_name: Mapped[str] = mapped_column(String(120))
    account_number: Mapped[str] = mapped_column(String(40))

    receipt_path: Mapped[str] = mapped_column(String(512))  # object path inside the bucket
    receipt_url: Mapped[str] = mapped_column(String(1024))
    content_type: Mapped[str] = mapped_column(String(64), default="application/pdf")
    storage_backend: Mapped[str] = mapped_column(String(16), default="local")  # local | gcs

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
