from decimal import Decimal
from sqlalchemy import String, Integer, Date, DateTime, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime, timezone
from app.db.session import Base

BOOKING_STATUSES = ("pending", "active", "approved", "completed")
PAYMENT_STATUSES = ("pending", "paid", "refunded")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_bookings_dates_ordered"),
        CheckConstraint("total_price >= 0", name="ck_bookings_total_non_negative"),
        CheckConstraint("status IN ('pending','active','approved','completed')", name="ck_bookings_status"),
        CheckConstraint("payment_status IN ('pending','paid','refunded')", name="ck_bookings_payment_status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)  # owner
    room_id: Mapped[str] = mapped_column(String(36), index=True)

    check_in_date: Mapped[date] = mapped_column(Date)
    check_out_date: Mapped[date] = mapped_column(Date)
    nights: Mapped[int] = mapped_column(Integer)

    # captured at creation: nights x room.price_per_night
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                                                 onupdate=lambda: datetime.now(timezone.utc))
