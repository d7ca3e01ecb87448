from __future__ import annotations

from app.models.profile import Profile
from app.services.letter_service import LODGE_RULES, letter_filename, render_confirmation_letter_pdf, resident_lines
from conftest import auth


def test_resident_lines_fallbacks() -> None:
    p = Profile(id="p1", full_name="Aisha Bello", email="aisha@example.org", phone="", gender="", address="")
    assert resident_lines(p) == [
        "Full Name: Aisha Bello",
        "Email: aisha@example.org",
        "Phone: Not provided",
        "Gender: Not specified",
        "Address: Not provided",
    ]


def test_pdf_bytes() -> None:
    p = Profile(id="p1", full_name="Aisha Bello", email="aisha@example.org")
    pdf = render_confirmation_letter_pdf(p)
    assert pdf.startswith(b"%PDF")
    assert len(LODGE_RULES) == 10
    assert letter_filename(p) == "mcan_confirmation_letter_p1.pdf"


def test_letter_download(client, admin, guest) -> None:
    r = client.get(f"/api/v1/admin/users/{guest.id}/confirmation-letter", headers=auth(admin))
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert f"mcan_confirmation_letter_{guest.id}.pdf" in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


def test_letter_for_unknown_user(client, admin) -> None:
    assert client.get("/api/v1/admin/users/nope/confirmation-letter", headers=auth(admin)).status_code == 404
