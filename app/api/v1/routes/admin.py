import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import http_error, require_admin, require_privileged
from app.models.profile import Profile
from app.schemas.auth import ProfileOut
from app.schemas.booking import BookingOut, RoomAvailabilityUpdate, RoomCreate, RoomOut
from app.schemas.users import RoleUpdate, StatsOut, StatusUpdate, UserDetailOut, UserPage
from app.services import room_service, user_service
from app.services.booking_service import booking_out, list_bookings_for_admin
from app.services.letter_service import letter_filename, render_confirmation_letter_pdf

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


@router.get("/admin/users", response_model=UserPage)
def list_users(q: str | None = None, status: str | None = None, role: str | None = None,
               limit: int = Query(50, ge=1, le=200), offset: int = Query(0, ge=0),
               db: Session = Depends(get_db),
               me: Profile = Depends(require_privileged)):
    total, items = user_service.list_users(db, q=q, status=status, role=role, limit=limit, offset=offset)
    return {"total": total, "items": [user_service.profile_out(p) for p in items]}


@router.get("/admin/users/{user_id}", response_model=UserDetailOut)
def user_detail(user_id: str, db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        return user_service.get_user_detail(db, user_id)
    except ValueError as e:
        raise http_error(e)


@router.patch("/admin/users/{user_id}/status")
def update_status(user_id: str, body: StatusUpdate,
                  db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        profile, email_sent = user_service.set_status(db, me, user_id, body.status)
    except ValueError as e:
        raise http_error(e)
    return {"profile": user_service.profile_out(profile), "emailSent": email_sent}


@router.patch("/admin/users/{user_id}/role", response_model=ProfileOut)
def update_role(user_id: str, body: RoleUpdate,
                db: Session = Depends(get_db), me: Profile = Depends(require_admin)):
    try:
        return user_service.profile_out(user_service.set_role(db, me, user_id, body.role))
    except ValueError as e:
        raise http_error(e)


@router.get("/admin/users/{user_id}/confirmation-letter")
def confirmation_letter(user_id: str, db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        profile = user_service.get_profile(db, user_id)
    except ValueError as e:
        raise http_error(e)
    try:
        pdf = render_confirmation_letter_pdf(profile)
    except Exception:
        logger.exception("confirmation letter failed for %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to generate confirmation letter")
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{letter_filename(profile)}"'},
    )


@router.get("/admin/stats", response_model=StatsOut)
def stats(db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    return user_service.dashboard_stats(db)


@router.get("/admin/bookings", response_model=List[BookingOut])
def list_bookings(status: str | None = None, paymentStatus: str | None = None,
                  limit: int = Query(100, ge=1, le=200), offset: int = Query(0, ge=0),
                  db: Session = Depends(get_db),
                  me: Profile = Depends(require_privileged)):
    rows = list_bookings_for_admin(db, status=status, payment_status=paymentStatus, limit=limit, offset=offset)
    return [booking_out(b, room, guest) for b, room, guest in rows]


@router.post("/admin/rooms", response_model=RoomOut, status_code=201)
def create_room(body: RoomCreate, db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        room = room_service.create_room(
            db, me, body.name, body.pricePerNight,
            description=body.description,
            capacity=body.capacity,
            amenities=body.amenities,
            is_available=body.isAvailable,
        )
    except ValueError as e:
        raise http_error(e)
    return room_service.room_out(room)


@router.patch("/admin/rooms/{room_id}", response_model=RoomOut)
def set_room_availability(room_id: str, body: RoomAvailabilityUpdate,
                          db: Session = Depends(get_db), me: Profile = Depends(require_privileged)):
    try:
        room = room_service.set_availability(db, me, room_id, body.isAvailable)
    except ValueError as e:
        raise http_error(e)
    return room_service.room_out(room)
