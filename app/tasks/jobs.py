from app.tasks.celery_app import celery
from app.tasks import worker_jobs


@celery.task(name="app.tasks.jobs.retry_failed_emails")
def retry_failed_emails(limit: int = 50):
    return worker_jobs.retry_failed_emails(limit=limit)
