from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user, http_error
from app.models.profile import Profile
from app.models.room import Room
from app.schemas.booking import BookingCreate, BookingOut
from app.services.booking_service import booking_out, create_booking, get_owned_booking, list_user_bookings

router = APIRouter(tags=["bookings"])


@router.post("/bookings", response_model=BookingOut, status_code=201)
def create(body: BookingCreate, db: Session = Depends(get_db), me: Profile = Depends(get_current_user)):
    try:
        booking = create_booking(db, me, body.roomId, body.checkIn, body.checkOut)
    except ValueError as e:
        raise http_error(e)
    return booking_out(booking, db.get(Room, booking.room_id), me)


@router.get("/bookings", response_model=List[BookingOut])
def my_bookings(db: Session = Depends(get_db), me: Profile = Depends(get_current_user)):
    return [booking_out(b, db.get(Room, b.room_id), me) for b in list_user_bookings(db, me.id)]


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: str, db: Session = Depends(get_db), me: Profile = Depends(get_current_user)):
    try:
        b = get_owned_booking(db, me, booking_id)
    except ValueError as e:
        raise http_error(e)
    return booking_out(b, db.get(Room, b.room_id), me)
