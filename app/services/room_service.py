import uuid
from decimal import Decimal
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.room import Room
from app.models.profile import Profile
from app.services.audit_service import log_audit


def list_available_rooms(db: Session) -> list[Room]:
    return db.query(Room).filter(Room.is_available == True).order_by(Room.name.asc()).all()  # noqa: E712


def create_room(db: Session, actor: Profile, name: str, price_per_night: Decimal, description: str = "",
                capacity: int = 1, amenities: list[str] | None = None, is_available: bool = True) -> Room:
    if not name.strip():
        raise ValueError("room name required")
    if Decimal(price_per_night) < 0:
        raise ValueError("price per night must be >= 0")
    if capacity < 1:
        raise ValueError("capacity must be >= 1")
    room = Room(
        id=str(uuid.uuid4()),
        name=name.strip(),
        description=description or "",
        capacity=capacity,
        price_per_night=Decimal(price_per_night),
        amenities_csv=",".join(a.strip() for a in (amenities or []) if a.strip()),
        is_available=is_available,
    )
    db.add(room)
    log_audit(db, actor.id, "room.create", "room", room.id, {"name": room.name, "pricePerNight": str(room.price_per_night)})
    db.commit()
    db.refresh(room)
    return room


def set_availability(db: Session, actor: Profile, room_id: str, is_available: bool) -> Room:
    room = db.get(Room, room_id)
    if not room:
        raise NotFoundError("room not found")
    room.is_available = bool(is_available)
    log_audit(db, actor.id, "room.availability", "room", room.id, {"isAvailable": room.is_available})
    db.commit()
    return room


def room_out(r: Room) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "description": r.description or "",
        "capacity": r.capacity,
        "pricePerNight": r.price_per_night,
        "amenities": r.amenities,
        "isAvailable": r.is_available,
    }
