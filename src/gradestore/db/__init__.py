"""Database module for SQLite persistence.

Provides:
- Connection opening and schema initialization
- Explicit write transactions
- Repository functions for users, exercises and submissions
"""

from gradestore.db.database import open_connection, transaction
from gradestore.db.errors import (
    ExerciseAlreadyExistsError,
    GradeStoreError,
    StorageError,
    UnknownUserError,
)

__all__ = [
    "open_connection",
    "transaction",
    "ExerciseAlreadyExistsError",
    "GradeStoreError",
    "StorageError",
    "UnknownUserError",
]
