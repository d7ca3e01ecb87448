from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileOut,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
)
from app.models.profile import Profile
from app.api.deps import get_auth_session, get_current_user, http_error
from app.services import auth_service
from app.services.auth_service import AuthError, AuthSession
from app.services.user_service import profile_out

router = APIRouter(tags=["auth"])


@router.post("/auth/register", response_model=ProfileOut, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    try:
        profile = auth_service.register(db, body)
    except ValueError as e:
        raise http_error(e)
    return profile_out(profile)


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, session: AuthSession = Depends(get_auth_session)):
    try:
        return session.sign_in(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    try:
        return auth_service.refresh_tokens(db, body.refresh_token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.get("/auth/me", response_model=ProfileOut)
def me(me: Profile = Depends(get_current_user)):
    """Return the signed-in profile including role and status."""
    return profile_out(me)


@router.post("/auth/logout")
def logout(body: RefreshRequest | None = None, session: AuthSession = Depends(get_auth_session)):
    if not session.is_authenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    session.sign_out(body.refresh_token if body else None)
    return {"ok": True}


@router.post("/auth/change-password")
def change_password(body: ChangePasswordRequest,
                    db: Session = Depends(get_db),
                    me: Profile = Depends(get_current_user)):
    try:
        auth_service.change_password(db, me.id, body.oldPassword, body.newPassword)
    except ValueError as e:
        raise http_error(e)
    return {"ok": True}


@router.post("/auth/password-reset/request")
def request_password_reset(body: PasswordResetRequest, db: Session = Depends(get_db)):
    # same answer whether or not the account exists
    auth_service.request_password_reset(db, body.email)
    return {"ok": True}


@router.post("/auth/password-reset/confirm")
def confirm_password_reset(body: PasswordResetConfirm, db: Session = Depends(get_db)):
    try:
        auth_service.confirm_password_reset(db, body.token, body.newPassword)
    except ValueError as e:
        raise http_error(e)
    return {"ok": True}
