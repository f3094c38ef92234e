from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


def create_script_engine(db_url: str):
    kwargs: dict[str, object] = {"future": True, "pool_pre_ping": True}
    if db_url.startswith("postgres"):
        kwargs["pool_recycle"] = 1800
    return create_engine(db_url, **kwargs)


def create_tables(db_url: str) -> None:
    """Create any missing tables (no-op for tables that already exist)."""
    from app.backoffice.models import Base

    engine = create_script_engine(db_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


@contextmanager
def script_session(db_url: str):
    engine = create_script_engine(db_url)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
