from decimal import Decimal
from sqlalchemy import String, Integer, Boolean, DateTime, Numeric, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("price_per_night >= 0", name="ck_rooms_price_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str] = mapped_column(Text, default="")
    capacity: Mapped[int] = mapped_column(Integer, default=1)
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    amenities_csv: Mapped[str] = mapped_column(String(600), default="")
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def amenities(self):
        return [a.strip() for a in (self.amenities_csv or "").split(",") if a.strip()]
