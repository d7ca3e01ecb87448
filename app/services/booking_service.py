import logging
import math
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import NotFoundError
from app.models.booking import Booking
from app.models.profile import Profile
from app.models.room import Room

logger = logging.getLogger(__name__)

ADMIN_VISIBLE_STATUSES = ("active", "approved", "pending")
ONE_DAY = timedelta(days=1)


def nights_between(check_in: date | datetime, check_out: date | datetime) -> int:
    """ceil((check_out - check_in) / 1 day)."""
    if isinstance(check_in, datetime) != isinstance(check_out, datetime):
        raise ValueError("check-in and check-out must be the same type")
    return math.ceil((check_out - check_in) / ONE_DAY)


def compute_total(nights: int, price_per_night: Decimal) -> Decimal:
    return Decimal(price_per_night) * nights


def create_booking(db: Session, booker: Profile, room_id: str, check_in: date, check_out: date) -> Booking:
    if not room_id or check_in is None or check_out is None:
        raise ValueError("Please select room and dates")
    nights = nights_between(check_in, check_out)
    if nights < 1:
        raise ValueError("check-out must be after check-in")

    room = db.get(Room, room_id)
    if not room:
        raise NotFoundError("room not found")
    if not room.is_available:
        raise ValueError("room is not available")

    booking = Booking(
        id=str(uuid.uuid4()),
        user_id=booker.id,
        room_id=room.id,
        check_in_date=check_in,
        check_out_date=check_out,
        nights=nights,
        price_per_night=Decimal(room.price_per_night),
        total_price=compute_total(nights, room.price_per_night),
        status="pending",
        payment_status="pending",
    )
    db.add(booking)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("booking insert failed for user %s room %s", booker.id, room.id)
        raise
    db.refresh(booking)
    logger.info("booking %s created: %s nights, total %s", booking.id, nights, booking.total_price)
    return booking


def get_owned_booking(db: Session, owner: Profile, booking_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b or b.user_id != owner.id:
        raise NotFoundError("booking not found")
    return b


def list_user_bookings(db: Session, user_id: str) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc())
        .all()
    )


def list_bookings_for_admin(db: Session, status: str | None = None, payment_status: str | None = None,
                            limit: int = 100, offset: int = 0) -> list[tuple[Booking, Room | None, Profile | None]]:
    q = (
        db.query(Booking, Room, Profile)
        .outerjoin(Room, Room.id == Booking.room_id)
        .outerjoin(Profile, Profile.id == Booking.user_id)
    )
    if status:
        q = q.filter(Booking.status == status)
    else:
        q = q.filter(Booking.status.in_(ADMIN_VISIBLE_STATUSES))
    if payment_status:
        q = q.filter(Booking.payment_status == payment_status)
    return q.order_by(Booking.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0)).all()


def booking_out(b: Booking, room: Room | None = None, guest: Profile | None = None) -> dict:
    return {
        "id": b.id,
        "roomId": b.room_id,
        "roomName": room.name if room else None,
        "checkIn": b.check_in_date.isoformat(),
        "checkOut": b.check_out_date.isoformat(),
        "nights": b.nights,
        "pricePerNight": b.price_per_night,
        "totalPrice": b.total_price,
        "status": b.status,
        "paymentStatus": b.payment_status,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
        "guestName": guest.full_name if guest else None,
        "guestEmail": guest.email if guest else None,
    }
