"""Shared fixtures for grade store tests."""

from datetime import datetime, timedelta, timezone

import pytest

from gradestore.config.app_config import clear_config_cache
from gradestore.core.grade_store import GradeStore
from gradestore.core.models import UNASSIGNED_ID, Exercise, Submission, User

BASE_TIME = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Each test starts without cached config or GRADESTORE_DB."""
    monkeypatch.delenv("GRADESTORE_DB", raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def db_path(tmp_path):
    """Path for a fresh database file."""
    return tmp_path / "db" / "grades.db"


@pytest.fixture
def store(db_path):
    """Open GradeStore on a temporary file, closed after the test."""
    with GradeStore(db_path) as s:
        yield s


@pytest.fixture
def ana() -> User:
    return User(username="ana", firstname="Ana", lastname="García")


@pytest.fixture
def carlos() -> User:
    return User(username="carlos", firstname="Carlos", lastname="Ruiz")


@pytest.fixture
def exercise() -> Exercise:
    """Exercise with three questions worth 10 points each."""
    ex = Exercise(
        exercise_id=7,
        name="SQL joins",
        due_date=datetime(2024, 3, 15, 23, 59, tzinfo=timezone.utc),
    )
    ex.add_question("inner", "Write an inner join", 10)
    ex.add_question("outer", "Write a left outer join", 10)
    ex.add_question("group", "Aggregate with GROUP BY", 10)
    return ex


@pytest.fixture
def make_submission():
    """Factory for submissions at BASE_TIME + minutes."""

    def _make(
        user: User,
        exercise: Exercise,
        grades: list[float],
        minutes: int = 0,
        submission_id: int = UNASSIGNED_ID,
    ) -> Submission:
        return Submission(
            submission_id=submission_id,
            user=user,
            exercise=exercise,
            submission_time=BASE_TIME + timedelta(minutes=minutes),
            grades=grades,
        )

    return _make


@pytest.fixture
def base_time() -> datetime:
    """Time of a submission made with minutes=0."""
    return BASE_TIME
