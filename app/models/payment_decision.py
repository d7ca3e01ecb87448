from sqlalchemy import String, DateTime, Text, Integer, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

DECISION_STATUSES = ("pending", "approved", "rejected")
TERMINAL_STATUSES = ("approved", "rejected")


class PaymentDecision(Base):
    """Append-only verification log. The latest row per receipt is its current status."""
    __tablename__ = "payment_decisions"
    __table_args__ = (
        UniqueConstraint("payment_receipt_id", "seq", name="uq_payment_decisions_receipt_seq"),
        CheckConstraint("status IN ('pending','approved','rejected')", name="ck_payment_decisions_status"),
        CheckConstraint(
            "(status = 'rejected' AND rejection_reason IS NOT NULL AND length(trim(rejection_reason)) > 0)"
            " OR (status <> 'rejected' AND rejection_reason IS NULL)",
            name="ck_payment_decisions_reason_iff_rejected",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    payment_receipt_id: Mapped[str] = mapped_column(String(36), index=True)
    # position in the receipt's log; ties on created_at are broken by this
    seq: Mapped[int] = mapped_column(Integer, default=1)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by_user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    verification_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
