from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.core.errors import NotFoundError
from app.models.booking import Booking
from app.services.booking_service import compute_total, create_booking, nights_between
from conftest import auth, make_profile, make_room


def test_nights_is_day_difference_for_dates() -> None:
    assert nights_between(date(2025, 1, 1), date(2025, 1, 3)) == 2


def test_nights_round_up_partial_days() -> None:
    assert nights_between(datetime(2025, 1, 1, 12), datetime(2025, 1, 3, 9)) == 2
    assert nights_between(datetime(2025, 1, 1, 12), datetime(2025, 1, 3, 13)) == 3


def test_total_is_nights_times_rate(db, guest, room) -> None:
    booking = create_booking(db, guest, room.id, date(2025, 1, 1), date(2025, 1, 3))
    assert booking.nights == 2
    assert booking.total_price == Decimal("10000")
    assert booking.total_price == compute_total(booking.nights, room.price_per_night)
    assert (booking.status, booking.payment_status) == ("pending", "pending")


def test_check_out_must_follow_check_in(db, guest, room) -> None:
    with pytest.raises(ValueError):
        create_booking(db, guest, room.id, date(2025, 1, 3), date(2025, 1, 3))
    assert db.query(Booking).count() == 0


def test_unknown_room(db, guest) -> None:
    with pytest.raises(NotFoundError):
        create_booking(db, guest, "missing", date(2025, 1, 1), date(2025, 1, 2))


def test_unavailable_room_is_refused(db, guest) -> None:
    closed = make_room(db, name="Closed", available=False)
    with pytest.raises(ValueError):
        create_booking(db, guest, closed.id, date(2025, 1, 1), date(2025, 1, 2))


def test_create_booking_over_http(client, guest, room) -> None:
    r = client.post("/api/v1/bookings", headers=auth(guest),
                    json={"roomId": room.id, "checkIn": "2025-01-01", "checkOut": "2025-01-03"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["nights"] == 2
    assert Decimal(body["totalPrice"]) == Decimal("10000")
    assert body["roomName"] == room.name

    mine = client.get("/api/v1/bookings", headers=auth(guest)).json()
    assert [b["id"] for b in mine] == [body["id"]]


def test_reversed_dates_rejected_before_service(client, guest, room) -> None:
    r = client.post("/api/v1/bookings", headers=auth(guest),
                    json={"roomId": room.id, "checkIn": "2025-01-03", "checkOut": "2025-01-01"})
    assert r.status_code == 422


def test_booking_is_private_to_owner(client, db, guest, room) -> None:
    other = make_profile(db, "other@example.org")
    b = create_booking(db, guest, room.id, date(2025, 1, 1), date(2025, 1, 2))
    assert client.get(f"/api/v1/bookings/{b.id}", headers=auth(other)).status_code == 404
    assert client.get(f"/api/v1/bookings/{b.id}", headers=auth(guest)).status_code == 200


def test_rooms_lists_only_available(client, db, guest, room) -> None:
    make_room(db, name="Closed", available=False)
    r = client.get("/api/v1/rooms", headers=auth(guest))
    assert r.status_code == 200
    assert [x["name"] for x in r.json()] == [room.name]
    assert r.json()[0]["amenities"] == ["Fan", "Bunk beds"]
