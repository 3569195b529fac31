"""
Engine and session management for the modmarket database.

The engine is created once from the configured database URL. Request handlers
get a session through the `generate_session` dependency; scripts and start-up
code use `session_context`.
"""
from collections.abc import Generator
from contextlib import contextmanager

import sqlalchemy as sa
from sqlalchemy.orm import Session, sessionmaker

from modmarket.core.config import get_app_settings

settings = get_app_settings()


def sql_global_init(db_url: str):
    connect_args = {}
    if "sqlite" in db_url:
        connect_args["check_same_thread"] = False

    engine = sa.create_engine(db_url, echo=False, connect_args=connect_args, pool_pre_ping=True)

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    return SessionLocal, engine


if settings.DB_URL is None:
    raise ValueError("No database url configured")

SessionLocal, engine = sql_global_init(settings.DB_URL)


@contextmanager
def session_context() -> Generator[Session, None, None]:
    """
    Context manager that yields a session and closes it afterwards.
    """
    sess = SessionLocal()
    try:
        yield sess
    finally:
        sess.close()


def generate_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields one session per request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
