from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.errors import ConflictError, NotFoundError
from app.models.profile import Profile
from app.services.access_service import Capability, resolve_capability
from app.services.auth_service import AuthSession
from app.services.storage_service import ReceiptStorage, get_receipt_storage

bearer = HTTPBearer(auto_error=False)


def get_auth_session(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> AuthSession:
    return AuthSession(db, creds.credentials if creds else None)


def get_current_user(session: AuthSession = Depends(get_auth_session)) -> Profile:
    profile = session.current_user()
    if profile is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return profile


def require_capability(*capabilities: Capability):
    def _guard(profile: Profile = Depends(get_current_user)) -> Profile:
        if resolve_capability(profile) not in capabilities:
            raise HTTPException(status_code=403, detail="Forbidden")
        return profile
    return _guard


require_privileged = require_capability(Capability.ADMIN, Capability.MANAGER)
require_admin = require_capability(Capability.ADMIN)


def get_storage() -> ReceiptStorage:
    return get_receipt_storage()


def http_error(e: ValueError) -> HTTPException:
    """Map a service-layer ValueError to its HTTP status."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
