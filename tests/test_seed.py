from __future__ import annotations

from app.models.profile import Profile
from app.models.room import Room
from app.seed import ROOMS, run


def test_seed_is_idempotent(db) -> None:
    run(db)
    run(db)
    admins = db.query(Profile).filter(Profile.role == "admin").all()
    assert len(admins) == 1
    assert admins[0].email == "admin@mcanfct.org"
    assert db.query(Room).count() == len(ROOMS)
