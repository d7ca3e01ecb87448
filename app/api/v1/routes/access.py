from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.config import settings
from app.schemas.payments import BankDetailsOut
from app.schemas.users import AccessOut
from app.api.deps import get_auth_session
from app.services.access_service import evaluate_access
from app.services.auth_service import AuthSession

router = APIRouter(tags=["access"])


@router.get("/access", response_model=AccessOut)
def check_access(path: str = "/", db: Session = Depends(get_db),
                 session: AuthSession = Depends(get_auth_session)):
    """Route guard for the web client: allow, or where to redirect."""
    me = session.current_user()
    decision = evaluate_access(db, me.id if me else None, path)
    return AccessOut(
        outcome=decision.outcome.value,
        redirectTo=decision.redirect_to,
        capability=decision.capability.value,
    )


@router.get("/bank-details", response_model=BankDetailsOut)
def bank_details():
    return BankDetailsOut(
        bank=settings.BANK_NAME,
        account=settings.BANK_ACCOUNT_NUMBER,
        name=settings.BANK_ACCOUNT_NAME,
    )
