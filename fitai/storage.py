"""
Backing media for the AppData document.

A medium stores one opaque document payload and must replace it atomically:
after a crash the medium holds either the previous or the new document, never
a partial one.

- JsonFileMedium: a JSON file replaced via temp file + fsync + os.replace
- SqlDocumentMedium: a single key/value row in a SQL database (SQLAlchemy)
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, DateTime, LargeBinary, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from fitai.errors import StoreIOError

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_KEY = "fitai_app_data"

Base = declarative_base()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentMedium(ABC):
    """Storage for a single document payload."""

    @abstractmethod
    def read(self) -> Optional[bytes]:
        """Return the stored payload, or None when nothing was ever written."""

    @abstractmethod
    def write(self, payload: bytes) -> None:
        """Atomically replace the stored payload."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored payload."""


# ============================================================================
# File medium
# ============================================================================

class JsonFileMedium(DocumentMedium):
    """
    Document stored as a file on disk.

    Writes go to a temporary file in the same directory, are flushed and
    fsync'ed, then moved over the target with os.replace (atomic on POSIX and
    Windows when source and target share a filesystem).
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> Optional[bytes]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise StoreIOError(f"Failed to read {self.path}: {e}") from e

    def write(self, payload: bytes) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as e:
            raise StoreIOError(f"Cannot prepare write to {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug("Temporary file %s already gone", tmp_name)
            raise StoreIOError(f"Failed to write {self.path}: {e}") from e

        logger.debug("Wrote %d bytes to %s", len(payload), self.path)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StoreIOError(f"Failed to remove {self.path}: {e}") from e


# ============================================================================
# SQL medium
# ============================================================================

class AppDocument(Base):
    """
    Stored document payload keyed by name.

    Attributes:
        key: Document key (one row per store)
        payload: Encoded JSON document
        updated_at: Timestamp of the last write
    """

    __tablename__ = "app_documents"

    key = Column(String, primary_key=True)
    payload = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    def __repr__(self):
        return f"<AppDocument(key='{self.key}', updated_at='{self.updated_at}')>"


def get_engine(database_url: str = "sqlite:///fitai.db"):
    """
    Create SQLAlchemy engine.

    Args:
        database_url: Database connection string (default: SQLite file)

    Returns:
        SQLAlchemy Engine instance
    """
    return create_engine(database_url, echo=False)


def get_session_factory(engine):
    """Create a session factory bound to the engine."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


class SqlDocumentMedium(DocumentMedium):
    """Document stored as one row of the app_documents table."""

    def __init__(self, database_url: str = "sqlite:///fitai.db", key: str = DEFAULT_DOCUMENT_KEY):
        self.key = key
        try:
            self.engine = get_engine(database_url)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreIOError(f"Database unavailable: {e}") from e
        self.session_factory = get_session_factory(self.engine)

    def read(self) -> Optional[bytes]:
        try:
            with self.session_factory() as session:
                row = session.get(AppDocument, self.key)
                return bytes(row.payload) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreIOError(f"Failed to read document '{self.key}': {e}") from e

    def write(self, payload: bytes) -> None:
        # One transaction: the row is replaced entirely or not at all.
        try:
            with self.session_factory() as session, session.begin():
                session.merge(
                    AppDocument(key=self.key, payload=payload, updated_at=_utc_now())
                )
        except SQLAlchemyError as e:
            raise StoreIOError(f"Failed to write document '{self.key}': {e}") from e

    def clear(self) -> None:
        try:
            with self.session_factory() as session, session.begin():
                row = session.get(AppDocument, self.key)
                if row is not None:
                    session.delete(row)
        except SQLAlchemyError as e:
            raise StoreIOError(f"Failed to clear document '{self.key}': {e}") from e
