"""Repository functions for the Exercise and Question tables."""

from __future__ import annotations

import sqlite3

import structlog

from gradestore.core.models import Exercise, Question
from gradestore.db.database import (
    from_epoch_millis,
    storage_errors,
    to_epoch_millis,
    transaction,
)
from gradestore.db.errors import ExerciseAlreadyExistsError

logger = structlog.get_logger(__name__)


def insert_exercise(conn: sqlite3.Connection, exercise: Exercise) -> int:
    """Insert an exercise and its questions.

    Questions get ids 0..n-1 in list order. The existence check and the
    inserts share one transaction.

    Args:
        conn: Open connection
        exercise: Exercise with caller-assigned exercise_id

    Returns:
        The exercise id

    Raises:
        ExerciseAlreadyExistsError: If exercise_id is already taken
        StorageError: On any database failure
    """
    with transaction(conn):
        existing = conn.execute(
            "SELECT 1 FROM Exercise WHERE ExerciseId = ?", (exercise.exercise_id,)
        ).fetchone()
        if existing is not None:
            logger.warning("exercises.duplicate", exercise_id=exercise.exercise_id)
            raise ExerciseAlreadyExistsError(exercise.exercise_id)

        conn.execute(
            "INSERT INTO Exercise (ExerciseId, Name, DueDate) VALUES (?, ?, ?)",
            (
                exercise.exercise_id,
                exercise.name,
                to_epoch_millis(exercise.due_date),
            ),
        )
        conn.executemany(
            """
            INSERT INTO Question (ExerciseId, QuestionId, Points, Name, "Desc")
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (exercise.exercise_id, question_id, q.points, q.name, q.desc)
                for question_id, q in enumerate(exercise.questions)
            ],
        )

    logger.debug(
        "exercises.added",
        exercise_id=exercise.exercise_id,
        questions=len(exercise.questions),
    )
    return exercise.exercise_id


def get_all_exercises(conn: sqlite3.Connection) -> list[Exercise]:
    """Get all exercises sorted by id, each with its questions.

    Returns:
        List of Exercise instances, questions ordered by question id
    """
    with storage_errors():
        rows = conn.execute(
            "SELECT ExerciseId, Name, DueDate FROM Exercise ORDER BY ExerciseId"
        ).fetchall()
        question_rows = conn.execute(
            """
            SELECT ExerciseId, QuestionId, Points, Name, "Desc"
            FROM Question
            ORDER BY ExerciseId, QuestionId
            """
        ).fetchall()

    questions: dict[int, list[Question]] = {}
    for row in question_rows:
        questions.setdefault(row["ExerciseId"], []).append(_row_to_question(row))

    return [
        Exercise(
            exercise_id=row["ExerciseId"],
            name=row["Name"],
            due_date=from_epoch_millis(row["DueDate"]),
            questions=questions.get(row["ExerciseId"], []),
        )
        for row in rows
    ]


def _row_to_question(row) -> Question:
    """Convert database row to Question."""
    return Question(
        name=row["Name"],
        desc=row["Desc"],
        points=row["Points"],
        question_id=row["QuestionId"],
    )
