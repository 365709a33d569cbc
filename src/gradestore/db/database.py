"""SQLite connection and schema management.

Provides connection opening, schema initialization, explicit transactions
and translation of driver errors into StorageError.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import structlog

from gradestore.db.errors import StorageError

logger = structlog.get_logger(__name__)

MEMORY_LOCATION = ":memory:"

# Seconds to wait on a locked database (sqlite3 default)
DEFAULT_TIMEOUT = 5.0

# Accepted URL prefixes for a location string, longest first
_LOCATION_PREFIXES = ("jdbc:sqlite:", "sqlite:///", "sqlite:")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def resolve_location(location: str | Path) -> str:
    """Turn a location string into something sqlite3.connect accepts.

    Plain paths pass through; ``sqlite:///path`` and ``jdbc:sqlite:path``
    have their scheme stripped.
    """
    text = str(location)
    for prefix in _LOCATION_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix):]
            break
    if not text:
        raise StorageError(f"Empty database location: '{location}'")
    return text


def open_connection(
    location: str | Path, timeout: float = DEFAULT_TIMEOUT
) -> sqlite3.Connection:
    """Open a connection and make sure the schema exists.

    Args:
        location: File path, ``:memory:``, or sqlite URL
        timeout: Seconds to wait for a lock held by another connection

    Returns:
        Connection in autocommit mode with row factory set to sqlite3.Row

    Raises:
        StorageError: If the database cannot be opened or initialized
    """
    target = resolve_location(location)

    with storage_errors():
        if target != MEMORY_LOCATION:
            # Ensure directory exists
            Path(target).parent.mkdir(parents=True, exist_ok=True)

        # Transactions are opened explicitly by transaction()
        conn = sqlite3.connect(target, timeout=timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            create_schema(conn)
        except sqlite3.Error:
            conn.close()
            raise

    logger.info("database.opened", location=target)
    return conn


@contextmanager
def storage_errors() -> Generator[None, None, None]:
    """Re-raise sqlite3 and filesystem errors as StorageError."""
    try:
        yield
    except (sqlite3.Error, OSError) as e:
        raise StorageError(str(e)) from e


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """Run a block inside one write transaction.

    Uses BEGIN IMMEDIATE so the write lock is taken before any
    existence check runs. Commits on success, rolls back on any error.

    Example:
        with transaction(conn):
            conn.execute("INSERT INTO Exercise ...")
    """
    with storage_errors():
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        conn.commit()


def create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency; existing tables are never altered.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS User (
            UserId INTEGER PRIMARY KEY,
            Username TEXT UNIQUE,
            Firstname TEXT,
            Lastname TEXT,
            Password TEXT
        );

        -- DueDate: epoch milliseconds
        CREATE TABLE IF NOT EXISTS Exercise (
            ExerciseId INTEGER PRIMARY KEY,
            Name TEXT,
            DueDate INTEGER
        );

        CREATE TABLE IF NOT EXISTS Question (
            ExerciseId INTEGER,
            QuestionId INTEGER,
            Points INTEGER,
            Name TEXT,
            "Desc" TEXT,
            PRIMARY KEY (ExerciseId, QuestionId)
        );

        -- SubmissionTime: epoch milliseconds
        CREATE TABLE IF NOT EXISTS Submission (
            SubmissionId INTEGER PRIMARY KEY,
            UserId INTEGER,
            ExerciseId INTEGER,
            SubmissionTime INTEGER
        );

        CREATE TABLE IF NOT EXISTS QuestionGrade (
            SubmissionId INTEGER,
            QuestionId INTEGER,
            Grade REAL,
            PRIMARY KEY (SubmissionId, QuestionId)
        );
        """
    )


def to_epoch_millis(moment: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // _MILLISECOND


def from_epoch_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=millis)
