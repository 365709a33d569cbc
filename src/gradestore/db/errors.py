"""Error taxonomy for the grade store.

Business outcomes and storage failures are siblings under GradeStoreError,
so callers can tell "rejected" from "could not execute".
"""


class GradeStoreError(Exception):
    """Base class for all grade store errors."""

    pass


class ExerciseAlreadyExistsError(GradeStoreError):
    """Raised when adding an exercise whose id is already taken."""

    def __init__(self, exercise_id: int):
        self.exercise_id = exercise_id
        super().__init__(f"Exercise already exists: {exercise_id}")


class UnknownUserError(GradeStoreError):
    """Raised when a submission references a username not in the User table."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Unknown user: '{username}'")


class StorageError(GradeStoreError):
    """Raised when the underlying database cannot execute an operation."""

    pass
