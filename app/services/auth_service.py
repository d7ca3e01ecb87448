import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from jose import JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    create_reset_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models.profile import Profile
from app.models.revoked_token import RevokedToken
from app.models.user import User
from app.schemas.auth import RegisterRequest, TokenPair
from app.services.notification_service import EmailTemplate, send_notification

logger = logging.getLogger(__name__)

SessionListener = Callable[[Profile | None], None]


class AuthError(Exception):
    """Bad credentials, bad token, or an account that may not sign in."""


def register(db: Session, body: RegisterRequest) -> Profile:
    email = body.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("email already registered")

    uid = str(uuid.uuid4())
    user = User(id=uid, email=email, password_hash=hash_password(body.password))
    profile = Profile(
        id=uid,
        full_name=body.fullName.strip(),
        email=email,
        phone=body.phone,
        address=body.address,
        gender=body.gender,
        date_of_birth=body.dateOfBirth,
        marital_status=body.maritalStatus,
        call_up_number=body.callUpNumber,
        state_of_origin=body.stateOfOrigin,
        lga=body.lga,
        mcan_reg_no=body.mcanRegNo,
        institution=body.institution,
        emergency_contact_name=body.emergencyContactName,
        emergency_contact_address=body.emergencyContactAddress,
        emergency_contact_phone1=body.emergencyContactPhone1,
        emergency_contact_phone2=body.emergencyContactPhone2 or None,
        next_of_kin_name=body.nextOfKinName,
        next_of_kin_address=body.nextOfKinAddress,
        next_of_kin_phone1=body.nextOfKinPhone1,
        next_of_kin_phone2=body.nextOfKinPhone2 or None,
        islamic_knowledge_level=body.islamicKnowledgeLevel,
        dietary_preferences=body.dietaryPreferences,
        prayer_requirements=body.prayerRequirements,
        role="user",
        status="active",
    )
    db.add(user)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("email already registered") from e
    db.refresh(profile)
    logger.info("registered user %s", uid)
    return profile


def _is_revoked(db: Session, jti: str | None) -> bool:
    return bool(jti) and db.get(RevokedToken, jti) is not None


def _revoke(db: Session, claims: dict) -> None:
    jti = claims.get("jti")
    if not jti or _is_revoked(db, jti):
        return
    exp = claims.get("exp")
    db.add(RevokedToken(
        jti=jti,
        user_id=claims.get("sub", ""),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
    ))


def _active_profile(db: Session, user_id: str | None) -> Profile | None:
    if not user_id:
        return None
    profile = db.get(Profile, user_id)
    if not profile or profile.status != "active":
        return None
    return profile


class AuthSession:
    """Request-scoped session: who is signed in, plus sign-in/out with change callbacks.

    Built from the bearer token presented on the request (or none). Listeners
    registered with subscribe() are called with the new profile (or None)
    whenever sign_in/sign_out changes the session.
    """

    def __init__(self, db: Session, token: str | None = None):
        self._db = db
        self._token = token
        self._claims: dict | None = None
        self._profile: Profile | None = None
        self._listeners: list[SessionListener] = []
        if token:
            self._load(token)

    def _load(self, token: str) -> None:
        try:
            claims = decode_token(token, expected_type="access")
        except JWTError:
            logger.info("rejected access token")
            return
        if _is_revoked(self._db, claims.get("jti")):
            return
        profile = _active_profile(self._db, claims.get("sub"))
        if profile:
            self._claims = claims
            self._profile = profile

    def current_user(self) -> Profile | None:
        return self._profile

    @property
    def is_authenticated(self) -> bool:
        return self._profile is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._profile)
            except Exception:
                logger.exception("session listener failed")

    def sign_in(self, email: str, password: str) -> TokenPair:
        user = self._db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.password_hash):
            raise AuthError("Invalid credentials")
        profile = _active_profile(self._db, user.id)
        if not profile:
            raise AuthError("Account is not active")

        pair = TokenPair(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
        )
        self._token = pair.access_token
        self._claims = decode_token(pair.access_token)
        self._profile = profile
        self._emit()
        return pair

    def sign_out(self, refresh_token: str | None = None) -> None:
        """Revoke the access token (and the refresh token, when given) and clear the session."""
        if self._claims:
            _revoke(self._db, self._claims)
            if refresh_token:
                try:
                    claims = decode_token(refresh_token, expected_type="refresh")
                except JWTError:
                    claims = None
                if claims and claims.get("sub") == self._claims.get("sub"):
                    _revoke(self._db, claims)
            self._db.commit()
        self._token = None
        self._claims = None
        self._profile = None
        self._emit()


def refresh_tokens(db: Session, refresh_token: str) -> TokenPair:
    try:
        claims = decode_token(refresh_token, expected_type="refresh")
    except JWTError as e:
        raise AuthError("Invalid refresh token") from e
    if _is_revoked(db, claims.get("jti")):
        raise AuthError("Invalid refresh token")
    profile = _active_profile(db, claims.get("sub"))
    if not profile:
        raise AuthError("User not found or inactive")
    return TokenPair(
        access_token=create_access_token(profile.id),
        refresh_token=create_refresh_token(profile.id),
    )


def change_password(db: Session, user_id: str, old_password: str, new_password: str) -> None:
    user = db.get(User, user_id)
    if not user or not verify_password(old_password, user.password_hash):
        raise ValueError("Old password incorrect")
    user.password_hash = hash_password(new_password)
    db.commit()


def request_password_reset(db: Session, email: str) -> bool:
    """Email a reset link. Unknown or inactive accounts are ignored; returns whether a mail went out."""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    profile = _active_profile(db, user.id) if user else None
    if not profile:
        logger.info("password reset requested for unknown or inactive account")
        return False
    token = create_reset_token(user.id)
    base = (settings.CLIENT_BASE_URL or "").rstrip("/")
    return send_notification(db, EmailTemplate.PASSWORD_RESET, profile.email, {
        "userName": profile.full_name,
        "resetLink": f"{base}/reset-password?token={token}",
    })


def confirm_password_reset(db: Session, token: str, new_password: str) -> None:
    try:
        claims = decode_token(token, expected_type="reset")
    except JWTError as e:
        raise ValueError("Invalid or expired reset token") from e
    jti = claims.get("jti")
    if _is_revoked(db, jti):
        raise ValueError("Reset link already used")
    user = db.get(User, claims.get("sub"))
    if not user:
        raise ValueError("Invalid or expired reset token")
    user.password_hash = hash_password(new_password)
    # single use
    _revoke(db, claims)
    db.commit()
