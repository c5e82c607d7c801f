# scamguard/db.py
import os
from dataclasses import dataclass
from typing import Optional, Dict, Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.exc import SQLAlchemyError

from scamguard.monitoring import logger

# Default dev DB; production points DATABASE_URL at the hosted Postgres instance
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scamguard.db")
AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "true").lower() in ("1", "true", "yes")


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class PersistenceError(RuntimeError):
    """An audit or chat row could not be written."""


@dataclass
class WriteResult:
    ok: bool
    row_id: Optional[int] = None
    error: Optional[str] = None


def reconfigure(url: str):
    """Reconfigure the DB engine and session factory at runtime (for tests)."""
    global engine, SessionLocal
    engine = _make_engine(url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    # Create tables from the declarative models if they don't exist
    try:
        import scamguard.models as models  # noqa: F401
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        # Don't crash the app at startup; writes will fail and be reported per request
        logger.warning("DB init failed", extra={"error": str(e)})


def _insert(collection: str, row: Dict[str, Any]) -> int:
    from scamguard.models import COLLECTIONS

    model = COLLECTIONS.get(collection)
    if model is None:
        raise PersistenceError(f"Unknown collection: {collection}")
    db: Session = SessionLocal()
    try:
        obj = model(**row)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj.id
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(str(e)) from e
    except TypeError as e:
        # row carried a key the collection has no column for
        raise PersistenceError(str(e)) from e
    finally:
        db.close()


class SqlRowStore:
    """Row store over the SQLAlchemy engine. Never raises on write failure."""

    def insert_row(self, collection: str, row: Dict[str, Any]) -> WriteResult:
        try:
            return WriteResult(ok=True, row_id=_insert(collection, row))
        except PersistenceError as e:
            logger.error("DB save error", extra={"collection": collection, "error": str(e)})
            return WriteResult(ok=False, error=str(e))
