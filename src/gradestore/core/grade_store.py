"""GradeStore facade.

Holds the single connection to the grade database and exposes the user,
exercise and submission operations on top of the repository functions.

Usage:
    from gradestore.core import GradeStore

    with GradeStore("db/gradestore.db") as store:
        store.add_or_update_user(User("ana", "Ana", "García"), "secret")
        best = store.get_best_submission(user, exercise)
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog

from gradestore.core.models import Exercise, Submission, User
from gradestore.db import exercises_repository, submissions_repository, users_repository
from gradestore.db.database import DEFAULT_TIMEOUT, open_connection, storage_errors
from gradestore.db.errors import StorageError

logger = structlog.get_logger(__name__)


class GradeStore:
    """Persistence and query facade over users, exercises and submissions."""

    def __init__(
        self, location: str | Path | None = None, timeout: float = DEFAULT_TIMEOUT
    ):
        """Create a store, opening it right away if a location is given.

        Args:
            location: File path, ``:memory:``, or sqlite URL
            timeout: Seconds to wait for a lock held by another writer
        """
        self._conn: sqlite3.Connection | None = None
        self._timeout = timeout
        if location is not None:
            self.open(location)

    def __enter__(self) -> GradeStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        """The active connection.

        Raises:
            StorageError: If the store is closed
        """
        if self._conn is None:
            raise StorageError("Grade store is not open")
        return self._conn

    def open(self, location: str | Path) -> sqlite3.Connection:
        """Open the database, creating missing tables.

        Re-opens if a connection is already active.

        Args:
            location: File path, ``:memory:``, or sqlite URL

        Returns:
            The new connection
        """
        self.close()
        self._conn = open_connection(location, timeout=self._timeout)
        return self._conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is None:
            return

        conn, self._conn = self._conn, None
        with storage_errors():
            conn.close()
        logger.info("database.closed")

    # =========================================================================
    # USERS
    # =========================================================================

    def add_or_update_user(self, user: User, password: str) -> int:
        """Add a user, or update names and password of an existing username.

        Returns:
            The user id
        """
        return users_repository.upsert_user(self.connection, user, password)

    def verify_login(self, username: str, password: str) -> bool:
        """Check login credentials.

        Returns:
            True if the user exists and the password matches exactly.

        Note: passwords are compared in plain text. Store only salted hashes
        in anything facing real users.
        """
        return users_repository.check_credentials(self.connection, username, password)

    # =========================================================================
    # EXERCISES
    # =========================================================================

    def add_exercise(self, exercise: Exercise) -> int:
        """Add an exercise with its questions.

        Returns:
            The exercise id

        Raises:
            ExerciseAlreadyExistsError: If the id is already in the database
        """
        return exercises_repository.insert_exercise(self.connection, exercise)

    def load_exercises(self) -> list[Exercise]:
        """Return all exercises sorted by exercise id."""
        return exercises_repository.get_all_exercises(self.connection)

    # =========================================================================
    # SUBMISSIONS
    # =========================================================================

    def store_submission(self, submission: Submission) -> int:
        """Store a submission with its grades.

        The submission id is generated when it is UNASSIGNED_ID.

        Returns:
            The submission id

        Raises:
            UnknownUserError: If the submitting user does not exist
        """
        return submissions_repository.insert_submission(self.connection, submission)

    def get_submission(self, user: User, exercise: Exercise, query: str) -> Submission | None:
        """Return the submission selected by ``query``, or None.

        ``query`` takes (username, exercise id, row limit) and returns one
        row per question sorted by QuestionId.
        """
        return submissions_repository.find_submission(self.connection, user, exercise, query)

    def get_last_submission(self, user: User, exercise: Exercise) -> Submission | None:
        """Return the latest submission for the exercise by the user, or None."""
        return self.get_submission(
            user, exercise, submissions_repository.LAST_SUBMISSION_QUERY
        )

    def get_best_submission(self, user: User, exercise: Exercise) -> Submission | None:
        """Return the submission with the highest total grade, or None.

        Ties go to the most recent submission.
        """
        return self.get_submission(
            user, exercise, submissions_repository.BEST_SUBMISSION_QUERY
        )
