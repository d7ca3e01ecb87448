#!/usr/bin/env python3
"""
Wait for Postgres, run migrations against DATABASE_URL, seed, then exec uvicorn.
"""
import logging
import os
import sys

from app.core.logging import setup_logging

setup_logging()
logger = logging.getLogger("start_api")

# 1) Wait for DB
import wait_for_db  # noqa: E402

wait_for_db.wait()

# 2) Run migrations using the same settings as the app
from app.core.config import settings  # noqa: E402
from alembic.config import Config  # noqa: E402
from alembic import command  # noqa: E402

alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
command.upgrade(alembic_cfg, "head")
logger.info("migrations applied")

# 3) Seed using an engine created *after* migrations
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

seed_engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SeedSession = sessionmaker(autocommit=False, autoflush=False, bind=seed_engine)
seed_db = SeedSession()
from app.seed import run as run_seed  # noqa: E402

run_seed(seed_db)
seed_db.close()
seed_engine.dispose()

# 4) Start uvicorn (replace current process)
port = os.getenv("PORT", "8000")
logger.info("starting uvicorn on port %s", port)
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port],
)
