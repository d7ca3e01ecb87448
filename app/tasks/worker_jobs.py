import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError
from app.db.session import SessionLocal
from app.services.notification_service import retry_failed

logger = logging.getLogger(__name__)


def retry_failed_emails(limit: int = 50) -> dict:
    """Re-send failed notification emails. Run periodically via Celery beat."""
    db: Session = SessionLocal()
    try:
        try:
            result = retry_failed(db, limit=limit)
        except ProgrammingError:
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        if result["processed"]:
            logger.info("email retry: %s", result)
        return result
    finally:
        db.close()
