from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from homefax.core.config import get_settings

settings = get_settings()

DATABASE_URL = settings.database_url  # fail fast if missing


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # the test client and worker threads share one sqlite file
        return create_engine(url, future=True, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, future=True)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
