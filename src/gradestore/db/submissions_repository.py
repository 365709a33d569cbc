"""Repository functions for the Submission and QuestionGrade tables.

Submission queries share one shape: parameters (username, exercise id,
row limit) and one row per graded question of the selected submission,
with columns SubmissionId, QuestionId, Grade and SubmissionTime, sorted
by QuestionId. Only submissions with at least one grade row are
candidates.
"""

from __future__ import annotations

import sqlite3

import structlog

from gradestore.core.models import UNASSIGNED_ID, Exercise, Submission, User
from gradestore.db.database import (
    from_epoch_millis,
    storage_errors,
    to_epoch_millis,
    transaction,
)
from gradestore.db.errors import UnknownUserError
from gradestore.db.users_repository import get_user_id

logger = structlog.get_logger(__name__)

# Most recent graded submission; equal times resolve to the higher id
LAST_SUBMISSION_QUERY = """
    SELECT s.SubmissionId, g.QuestionId, g.Grade, s.SubmissionTime
    FROM Submission AS s
    JOIN QuestionGrade AS g ON g.SubmissionId = s.SubmissionId
    WHERE s.SubmissionId = (
        SELECT c.SubmissionId
        FROM Submission AS c
        JOIN User AS u ON u.UserId = c.UserId
        WHERE u.Username = ?
          AND c.ExerciseId = ?
          AND EXISTS (
              SELECT 1 FROM QuestionGrade AS cg
              WHERE cg.SubmissionId = c.SubmissionId
          )
        ORDER BY c.SubmissionTime DESC, c.SubmissionId DESC
        LIMIT 1
    )
    ORDER BY g.QuestionId
    LIMIT ?
"""

# Highest total grade (to 6 decimals); ties go to the most recent, then the higher id
BEST_SUBMISSION_QUERY = """
    SELECT s.SubmissionId, g.QuestionId, g.Grade, s.SubmissionTime
    FROM Submission AS s
    JOIN QuestionGrade AS g ON g.SubmissionId = s.SubmissionId
    WHERE s.SubmissionId = (
        SELECT c.SubmissionId
        FROM Submission AS c
        JOIN User AS u ON u.UserId = c.UserId
        JOIN QuestionGrade AS cg ON cg.SubmissionId = c.SubmissionId
        WHERE u.Username = ?
          AND c.ExerciseId = ?
        GROUP BY c.SubmissionId
        ORDER BY ROUND(SUM(cg.Grade), 6) DESC, MAX(c.SubmissionTime) DESC, c.SubmissionId DESC
        LIMIT 1
    )
    ORDER BY g.QuestionId
    LIMIT ?
"""


def insert_submission(conn: sqlite3.Connection, submission: Submission) -> int:
    """Store a submission and its per-question grades.

    Grade i is stored under QuestionId i. If submission_id is UNASSIGNED_ID
    the database assigns one; otherwise the given id is used as is.

    Args:
        conn: Open connection
        submission: Submission whose user is resolved by username

    Returns:
        The submission id

    Raises:
        UnknownUserError: If the username is not in the User table
        StorageError: On any database failure, including a duplicate id
    """
    username = submission.user.username

    with transaction(conn):
        user_id = get_user_id(conn, username)
        if user_id is None:
            logger.warning("submissions.unknown_user", username=username)
            raise UnknownUserError(username)

        submitted_at = to_epoch_millis(submission.submission_time)
        if submission.submission_id == UNASSIGNED_ID:
            cursor = conn.execute(
                """
                INSERT INTO Submission (UserId, ExerciseId, SubmissionTime)
                VALUES (?, ?, ?)
                """,
                (user_id, submission.exercise.exercise_id, submitted_at),
            )
            submission_id = cursor.lastrowid
        else:
            conn.execute(
                """
                INSERT INTO Submission (SubmissionId, UserId, ExerciseId, SubmissionTime)
                VALUES (?, ?, ?, ?)
                """,
                (
                    submission.submission_id,
                    user_id,
                    submission.exercise.exercise_id,
                    submitted_at,
                ),
            )
            submission_id = submission.submission_id

        conn.executemany(
            "INSERT INTO QuestionGrade (SubmissionId, QuestionId, Grade) VALUES (?, ?, ?)",
            [
                (submission_id, question_id, float(grade))
                for question_id, grade in enumerate(submission.grades)
            ],
        )

    logger.debug(
        "submissions.stored",
        submission_id=submission_id,
        username=username,
        exercise_id=submission.exercise.exercise_id,
    )
    return submission_id


def find_submission(
    conn: sqlite3.Connection,
    user: User,
    exercise: Exercise,
    query: str,
) -> Submission | None:
    """Run a submission query and assemble its rows into a Submission.

    Grades are placed by question id; questions without a grade row read
    as 0.0.

    Args:
        conn: Open connection
        user: Whose submission to look up
        exercise: Which exercise; its question count caps the row count
        query: SQL taking (username, exercise id, row limit)

    Returns:
        Submission if any row came back, None otherwise
    """
    question_count = len(exercise.questions)

    with storage_errors():
        rows = conn.execute(
            query, (user.username, exercise.exercise_id, question_count)
        ).fetchall()

    if not rows:
        return None

    grades = [0.0] * question_count
    for row in rows:
        question_id = row["QuestionId"]
        if 0 <= question_id < question_count:
            grades[question_id] = row["Grade"]

    first = rows[0]
    return Submission(
        submission_id=first["SubmissionId"],
        user=user,
        exercise=exercise,
        submission_time=from_epoch_millis(first["SubmissionTime"]),
        grades=grades,
    )
