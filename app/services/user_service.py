import logging
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.booking import Booking
from app.models.profile import Profile, ROLES, STATUSES
from app.models.room import Room
from app.services.audit_service import log_audit
from app.services.booking_service import booking_out
from app.services.notification_service import EmailTemplate, send_notification
from app.services.payment_service import count_pending

logger = logging.getLogger(__name__)


def profile_out(p: Profile) -> dict:
    return {
        "id": p.id,
        "fullName": p.full_name,
        "email": p.email,
        "phone": p.phone or "",
        "address": p.address or "",
        "gender": p.gender or "",
        "role": p.role,
        "status": p.status,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
    }


def list_users(db: Session, q: str | None = None, status: str | None = None, role: str | None = None,
               limit: int = 50, offset: int = 0) -> tuple[int, list[Profile]]:
    """Search name/email/phone (case-insensitive). Returns (total, page)."""
    query = db.query(Profile)
    term = (q or "").strip().lower()
    if term:
        like = f"%{term}%"
        query = query.filter(or_(
            func.lower(Profile.full_name).like(like),
            func.lower(Profile.email).like(like),
            Profile.phone.like(like),
        ))
    if status:
        query = query.filter(Profile.status == status)
    if role:
        query = query.filter(Profile.role == role)
    total = query.count()
    items = (
        query.order_by(Profile.created_at.desc())
        .limit(min(limit, 200))
        .offset(max(offset, 0))
        .all()
    )
    return total, items


def get_profile(db: Session, user_id: str) -> Profile:
    p = db.get(Profile, user_id)
    if not p:
        raise NotFoundError("user not found")
    return p


def get_user_detail(db: Session, user_id: str) -> dict:
    p = get_profile(db, user_id)
    rows = (
        db.query(Booking, Room)
        .outerjoin(Room, Room.id == Booking.room_id)
        .filter(Booking.user_id == p.id)
        .order_by(Booking.created_at.desc())
        .all()
    )
    return {"profile": profile_out(p), "bookings": [booking_out(b, room, p) for b, room in rows]}


def set_status(db: Session, actor: Profile, user_id: str, status: str) -> tuple[Profile, bool]:
    """Change account status and notify the user. Returns (profile, email_sent)."""
    if status not in STATUSES:
        raise ValueError("invalid status")
    if actor.id == user_id:
        raise ValueError("you cannot change your own status")
    p = get_profile(db, user_id)
    previous = p.status
    p.status = status
    log_audit(db, actor.id, "user.status", "profile", p.id, {"from": previous, "to": status})
    db.commit()
    db.refresh(p)
    logger.info("user %s status %s -> %s by %s", p.id, previous, status, actor.id)

    email_sent = send_notification(db, EmailTemplate.ACCOUNT_STATUS_CHANGE, p.email, {
        "userName": p.full_name,
        "status": status,
    })
    return p, email_sent


def set_role(db: Session, actor: Profile, user_id: str, role: str) -> Profile:
    if role not in ROLES:
        raise ValueError("invalid role")
    if actor.id == user_id:
        raise ValueError("you cannot change your own role")
    p = get_profile(db, user_id)
    previous = p.role
    p.role = role
    log_audit(db, actor.id, "user.role", "profile", p.id, {"from": previous, "to": role})
    db.commit()
    db.refresh(p)
    return p


def dashboard_stats(db: Session) -> dict:
    total_users = db.query(func.count(Profile.id)).filter(Profile.status != "deleted").scalar() or 0
    active_bookings = (
        db.query(func.count(Booking.id))
        .filter(Booking.payment_status == "paid", Booking.status.in_(("active", "approved")))
        .scalar()
    ) or 0
    return {
        "totalUsers": total_users,
        "activeBookings": active_bookings,
        "pendingPayments": count_pending(db),
    }
