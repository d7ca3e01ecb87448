"""Capability resolution and the route guard.

All role checks go through resolve_capability(); nothing else compares role strings.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.models.profile import Profile

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
HOME_PATH = "/"
PUBLIC_PATHS = {"/", "/login", "/register"}


class Capability(str, enum.Enum):
    GUEST = "guest"
    USER = "user"
    ADMIN = "admin"
    MANAGER = "manager"


PRIVILEGED = frozenset({Capability.ADMIN, Capability.MANAGER})


class Outcome(str, enum.Enum):
    LOGIN = "login"
    HOME = "home"
    ALLOW = "allow"


@dataclass(frozen=True)
class AccessDecision:
    outcome: Outcome
    capability: Capability
    redirect_to: str | None = None


def resolve_capability(profile: Profile | None) -> Capability:
    if profile is None or profile.status != "active":
        return Capability.GUEST
    if profile.role == "admin":
        return Capability.ADMIN
    if profile.role == "manager":
        return Capability.MANAGER
    return Capability.USER


def is_privileged(capability: Capability) -> bool:
    return capability in PRIVILEGED


def is_admin_path(path: str) -> bool:
    return path == "/admin" or path.startswith("/admin/")


def login_redirect(path: str) -> str:
    return f"{LOGIN_PATH}?next={quote(path, safe='/')}"


def lookup_capability(db: Session, user_id: str) -> Capability:
    """Capability for a user id. Lookup errors resolve to GUEST (fail closed)."""
    try:
        profile = db.get(Profile, user_id)
    except Exception:
        logger.exception("profile lookup failed for %s; denying", user_id)
        db.rollback()
        return Capability.GUEST
    return resolve_capability(profile)


def evaluate_access(db: Session, user_id: str | None, path: str) -> AccessDecision:
    path = path or HOME_PATH
    if not path.startswith("/"):
        path = "/" + path
    if path in PUBLIC_PATHS:
        capability = lookup_capability(db, user_id) if user_id else Capability.GUEST
        return AccessDecision(Outcome.ALLOW, capability)
    if not user_id:
        return AccessDecision(Outcome.LOGIN, Capability.GUEST, login_redirect(path))

    capability = lookup_capability(db, user_id)
    if is_admin_path(path):
        if is_privileged(capability):
            return AccessDecision(Outcome.ALLOW, capability)
        return AccessDecision(Outcome.HOME, capability, HOME_PATH)
    # guest pages (/dashboard, /book, /payment) only need a live identity
    if capability is Capability.GUEST:
        return AccessDecision(Outcome.LOGIN, capability, login_redirect(path))
    return AccessDecision(Outcome.ALLOW, capability)
