import logging
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import hash_password
from app.models.user import User
from app.models.profile import Profile
from app.models.room import Room

logger = logging.getLogger(__name__)

ROOMS = [
    # name, description, capacity, price per night, amenities
    ("Brothers Hall A", "Shared hall for brothers, close to the musallah.", 6, Decimal("5000"),
     ["Fan", "Bunk beds", "Shared bathroom"]),
    ("Brothers Hall B", "Shared hall for brothers.", 6, Decimal("5000"), ["Fan", "Bunk beds", "Shared bathroom"]),
    ("Sisters Hall", "Shared hall for sisters with a private entrance.", 6, Decimal("5000"),
     ["Fan", "Bunk beds", "Shared bathroom"]),
    ("Executive Room", "Two-bed room with its own bathroom.", 2, Decimal("12000"),
     ["Air conditioning", "Private bathroom", "Wardrobe"]),
]


def ensure_admin(db: Session, email: str, password: str, name: str) -> None:
    email = email.strip().lower()
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    uid = str(uuid.uuid4())
    db.add(User(id=uid, email=email, password_hash=hash_password(password)))
    db.add(Profile(id=uid, full_name=name, email=email, role="admin", status="active"))
    db.commit()
    logger.info("seeded admin %s", email)


def ensure_rooms(db: Session) -> None:
    for name, description, capacity, price, amenities in ROOMS:
        if db.query(Room).filter(Room.name == name).first():
            continue
        db.add(Room(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            capacity=capacity,
            price_per_night=price,
            amenities_csv=",".join(amenities),
            is_available=True,
        ))
    db.commit()


def run(db=None):
    own = db is None
    if own:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM profiles LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("profiles table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_admin(db, settings.SEED_ADMIN_EMAIL, settings.SEED_ADMIN_PASSWORD, settings.SEED_ADMIN_NAME)
        ensure_rooms(db)
    finally:
        if own:
            db.close()


if __name__ == "__main__":
    from app.core.logging import setup_logging

    setup_logging()
    run()
