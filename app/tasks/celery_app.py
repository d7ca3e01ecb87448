from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from app.core.config import settings
from app.core.logging import setup_logging


def _redis_url_for_celery(url: str) -> str:
    """Celery requires ssl_cert_reqs for rediss:// (e.g. Upstash TLS)."""
    if not url or not url.strip().lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    if "ssl_cert_reqs" not in qs:
        qs["ssl_cert_reqs"] = ["CERT_NONE"]
        new_query = urlencode(qs, doseq=True)
        return urlunparse(parsed._replace(query=new_query))
    return url


_redis_url = _redis_url_for_celery(settings.REDIS_URL)

setup_logging()

celery = Celery(
    "mcan_lodge",
    broker=_redis_url,
    backend=_redis_url,
    include=["app.tasks.jobs"],
)

celery.conf.timezone = "Africa/Lagos"
# keep our dictConfig handlers
celery.conf.worker_hijack_root_logger = False

celery.conf.beat_schedule = {
    "retry-failed-emails-every-2-minutes": {
        "task": "app.tasks.jobs.retry_failed_emails",
        "schedule": 120.0,
        "kwargs": {"limit": 50},
    },
}
