from sqlalchemy import String, DateTime, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

ROLES = ("user", "admin", "manager")
STATUSES = ("active", "disabled", "deleted")


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("role IN ('user','admin','manager')", name="ck_profiles_role"),
        CheckConstraint("status IN ('active','disabled','deleted')", name="ck_profiles_status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # same as users.id
    full_name: Mapped[str] = mapped_column(String(200), default="")
    email: Mapped[str] = mapped_column(String(320), index=True)
    phone: Mapped[str] = mapped_column(String(40), default="")
    address: Mapped[str] = mapped_column(String(300), default="")
    gender: Mapped[str] = mapped_column(String(10), default="")  # male, female
    date_of_birth: Mapped[str] = mapped_column(String(10), default="")  # YYYY-MM-DD
    marital_status: Mapped[str] = mapped_column(String(20), default="")

    call_up_number: Mapped[str] = mapped_column(String(40), default="")
    state_of_origin: Mapped[str] = mapped_column(String(80), default="")
    lga: Mapped[str] = mapped_column(String(80), default="")
    mcan_reg_no: Mapped[str] = mapped_column(String(40), default="")
    institution: Mapped[str] = mapped_column(String(200), default="")

    emergency_contact_name: Mapped[str] = mapped_column(String(200), default="")
    emergency_contact_address: Mapped[str] = mapped_column(String(300), default="")
    emergency_contact_phone1: Mapped[str] = mapped_column(String(40), default="")
    emergency_contact_phone2: Mapped[str | None] = mapped_column(String(40), nullable=True)

    next_of_kin_name: Mapped[str] = mapped_column(String(200), default="")
    next_of_kin_address: Mapped[str] = mapped_column(String(300), default="")
    next_of_kin_phone1: Mapped[str] = mapped_column(String(40), default="")
    next_of_kin_phone2: Mapped[str | None] = mapped_column(String(40), nullable=True)

    islamic_knowledge_level: Mapped[str] = mapped_column(String(20), default="")
    dietary_preferences: Mapped[str] = mapped_column(String(20), default="")
    prayer_requirements: Mapped[str] = mapped_column(Text, default="")

    role: Mapped[str] = mapped_column(String(20), default="user", index=True)
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                                                 onupdate=lambda: datetime.now(timezone.utc))
