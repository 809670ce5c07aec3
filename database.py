from __future__ import annotations

import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


DEFAULT_DATABASE_URL = "sqlite:///./otp.db"


def normalize_database_url(url: str) -> str:
    """Pin bare Postgres URLs to the psycopg (v3) driver; leave others alone."""
    scheme, sep, rest = url.partition("://")
    if sep and "+" not in scheme and scheme in {"postgres", "postgresql"}:
        return f"postgresql+psycopg://{rest}"
    return url


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL)

# The engine is lazy: nothing connects until the sql OTP backend opens a session.
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()
