import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.core.logging import setup_logging
from app.api.v1.api import api_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# CORS: use CORS_ORIGINS from env in production; default to the Vite dev server
_default_origins = [
    "http://127.0.0.1:5173", "http://localhost:5173",
]
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok"}


# Locally stored receipts are served by the API itself
if settings.RECEIPT_PUBLIC_BASE_URL.startswith("/"):
    app.mount(
        settings.RECEIPT_PUBLIC_BASE_URL.rstrip("/"),
        StaticFiles(directory=settings.RECEIPT_LOCAL_DIR, check_dir=False),
        name="receipts",
    )

logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
