"""Repository functions for the User table."""

from __future__ import annotations

import sqlite3

import structlog

from gradestore.core.models import User
from gradestore.db.database import storage_errors, transaction

logger = structlog.get_logger(__name__)


def upsert_user(conn: sqlite3.Connection, user: User, password: str) -> int:
    """Insert a user, or overwrite names and password of an existing username.

    The UserId of an existing row is preserved, so submissions stored
    under it stay attached.

    Args:
        conn: Open connection
        user: User record (matched by username)
        password: Plain-text password

    Returns:
        UserId of the inserted or updated row

    Raises:
        StorageError: On any database failure
    """
    with transaction(conn):
        conn.execute(
            """
            INSERT INTO User (Username, Firstname, Lastname, Password)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(Username) DO UPDATE SET
                Firstname = excluded.Firstname,
                Lastname = excluded.Lastname,
                Password = excluded.Password
            """,
            (user.username, user.firstname, user.lastname, password),
        )
        # lastrowid is not reliable on the update path
        row = conn.execute(
            "SELECT UserId FROM User WHERE Username = ?", (user.username,)
        ).fetchone()

    user_id = row["UserId"]
    logger.debug("users.upserted", username=user.username, user_id=user_id)
    return user_id


def get_user_id(conn: sqlite3.Connection, username: str) -> int | None:
    """Get UserId by username.

    Returns:
        UserId if found, None otherwise
    """
    with storage_errors():
        row = conn.execute(
            "SELECT UserId FROM User WHERE Username = ?", (username,)
        ).fetchone()

    if row is None:
        return None

    return row["UserId"]


def check_credentials(conn: sqlite3.Connection, username: str, password: str) -> bool:
    """Return True if a user with exactly this username and password exists.

    Note: comparison is against a plain-text column. This is insecure; real
    deployments must store a salted password hash instead.
    """
    with storage_errors():
        row = conn.execute(
            "SELECT 1 FROM User WHERE Username = ? AND Password = ?",
            (username, password),
        ).fetchone()

    return row is not None
