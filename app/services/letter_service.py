from __future__ import annotations

import io
from datetime import datetime, timezone

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.models.profile import Profile

LODGE_RULES = [
    "1. Religious Practice: Only Islamic religion is practiced within the lodge.",
    "2. Respect and Conduct: Treat all lodgers with utmost respect.",
    "3. Dress Code: Adhere strictly to modest Islamic dress guidelines.",
    "4. Sanitation: Actively participate in lodge cleanliness.",
    "5. Financial Obligations: Pay monthly dues before the 10th.",
    "6. No Illegal Activities: Strictly forbidden.",
    "7. Visitors: No unauthorized visitors allowed.",
    "8. Sound Systems: Maintain low volume.",
    "9. Personal Belongings: All MCAN materials remain MCAN property.",
    "10. Conduct: Embody Islamic teachings always.",
]

MOTTO = (
    '"Say verily, my prayer, my sacrifice, my living, and my dying',
    'are for Allah, the lord of the worlds" (Q16:162)',
)

FOOTER = "MCAN FCT Chapter - Empowering Corpers through Islamic Principles"

_SEA_GREEN = colors.Color(46 / 255, 139 / 255, 87 / 255)
_FOREST_GREEN = colors.Color(34 / 255, 139 / 255, 34 / 255)
_PALE_GREEN = colors.Color(152 / 255, 251 / 255, 152 / 255)
_HONEYDEW = colors.Color(240 / 255, 1, 240 / 255)


def letter_filename(profile: Profile) -> str:
    return f"mcan_confirmation_letter_{profile.id}.pdf"


def resident_lines(profile: Profile) -> list[str]:
    return [
        f"Full Name: {profile.full_name}",
        f"Email: {profile.email}",
        f"Phone: {profile.phone or 'Not provided'}",
        f"Gender: {profile.gender or 'Not specified'}",
        f"Address: {profile.address or 'Not provided'}",
    ]


def _section(c: canvas.Canvas, w: float, y: float, title: str) -> None:
    c.setFillColor(_PALE_GREEN)
    c.rect(56, y - 5, w - 112, 18, stroke=0, fill=1)
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 11)
    c.drawString(64, y, title)


def render_confirmation_letter_pdf(profile: Profile, issued: datetime | None = None) -> bytes:
    """Return the A4 accommodation confirmation letter for a resident. Pure function."""
    issued = issued or datetime.now(timezone.utc)
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    w, h = A4

    # Background and border
    c.setFillColor(_HONEYDEW)
    c.rect(0, 0, w, h, stroke=0, fill=1)
    c.setStrokeColor(_FOREST_GREEN)
    c.setLineWidth(2)
    c.rect(28, 28, w - 56, h - 56)

    # Header band
    c.setFillColor(_SEA_GREEN)
    c.rect(42, h - 128, w - 84, 85, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(w / 2, h - 92, "MUSLIM CORPERS' ASSOCIATION OF NIGERIA")
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 13)
    c.drawCentredString(w / 2, h - 150, "FCT CHAPTER - ACCOMMODATION CONFIRMATION")
    c.setLineWidth(1)
    c.line(56, h - 160, w - 56, h - 160)

    c.setFont("Helvetica", 10)
    c.drawRightString(w - 64, h - 180, f"Date: {issued.date().isoformat()}")

    y = h - 215
    _section(c, w, y, "RESIDENT INFORMATION")
    y -= 22
    c.setFont("Helvetica", 10)
    for line in resident_lines(profile):
        c.drawString(64, y, line)
        y -= 15

    y -= 14
    _section(c, w, y, "LODGE RULES AND REGULATIONS")
    y -= 22
    c.setFont("Helvetica", 10)
    for rule in LODGE_RULES:
        c.drawString(64, y, rule)
        y -= 15

    y -= 14
    c.setFont("Helvetica-Oblique", 10)
    c.drawString(64, y, MOTTO[0])
    c.drawString(64, y - 13, MOTTO[1])

    y -= 50
    _section(c, w, y, "ACCEPTANCE DECLARATION")
    y -= 22
    c.setFont("Helvetica", 10)
    c.drawString(64, y, "I hereby acknowledge that I have read, understood, and agree")
    c.drawString(64, y - 13, "to abide by all MCAN lodge rules and regulations.")

    y -= 55
    c.drawString(64, y, "Resident Signature: _____________________")
    c.drawString(w - 250, y, "Date: _____________________")

    # Footer
    c.setFillColor(colors.Color(105 / 255, 105 / 255, 105 / 255))
    c.setFont("Helvetica", 8)
    c.drawCentredString(w / 2, 40, FOOTER)

    c.showPage()
    c.save()
    return buf.getvalue()
