"""
Database connection and session management for the profile store.

The aggregation pipeline never touches the database; only ProfileStore does.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings
from processing.models import Base

SQLITE_FILE_PREFIX = "sqlite:///"


def create_db_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Engine for ``url`` (defaults to DATABASE_URL). SQLite sessions may cross threads."""
    url = url or settings.DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(
        url,
        echo=settings.DEBUG if echo is None else echo,
        connect_args=connect_args,
    )


engine = create_db_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(bind: Optional[Engine] = None):
    """Create the profile tables, and the SQLite data directory if needed."""
    bind = bind or engine
    url = bind.url.render_as_string(hide_password=False)
    if url.startswith(SQLITE_FILE_PREFIX) and bind.url.database:
        Path(bind.url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=bind)


@contextmanager
def session_scope(bind: Optional[Engine] = None):
    """Session that commits on success and rolls back on error."""
    db = Session(bind or engine)
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
