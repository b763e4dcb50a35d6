"""
Dashboard Database Initialization

Engines and session factories are built explicitly and handed to the stores,
so tests can run each case against a fresh in-memory database.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared import config
from dashboard.models import Base

logger = logging.getLogger(__name__)


def make_engine(database_url: Optional[str] = None) -> Engine:
    url = database_url or config.DATABASE_URL
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
        db_path = url.split("sqlite:///", 1)[-1]
        if db_path:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


def make_session_factory(engine: Engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine):
    """Create all dashboard tables (additive only, never drops data)"""
    logger.info(f"Initializing dashboard database ({engine.url})...")
    Base.metadata.create_all(bind=engine)
    logger.info("Dashboard database schema ready")
