"""Tests for adding and loading exercises."""

from datetime import datetime, timezone

import pytest

from gradestore.core.models import Exercise, Question
from gradestore.db.errors import ExerciseAlreadyExistsError


def _question_count(store) -> int:
    return store.connection.execute("SELECT COUNT(*) FROM Question").fetchone()[0]


class TestExerciseModel:
    """Tests for the Exercise record helpers."""

    def test_add_question_assigns_sequential_ids(self, exercise):
        assert [q.question_id for q in exercise.questions] == [0, 1, 2]

    def test_total_points(self, exercise):
        assert exercise.total_points == 30


class TestAddExercise:
    """Tests for GradeStore.add_exercise."""

    def test_returns_exercise_id(self, store, exercise):
        assert store.add_exercise(exercise) == 7

    def test_inserts_questions_with_sequential_ids(self, store, exercise):
        """Questions are stored with ids 0..n-1 in list order."""
        store.add_exercise(exercise)

        rows = store.connection.execute(
            "SELECT QuestionId, Name FROM Question WHERE ExerciseId = 7 ORDER BY QuestionId"
        ).fetchall()
        assert [(r["QuestionId"], r["Name"]) for r in rows] == [
            (0, "inner"),
            (1, "outer"),
            (2, "group"),
        ]

    def test_duplicate_id_raises(self, store, exercise):
        store.add_exercise(exercise)

        with pytest.raises(ExerciseAlreadyExistsError) as exc_info:
            store.add_exercise(exercise)

        assert exc_info.value.exercise_id == 7

    def test_duplicate_id_leaves_questions_untouched(self, store, exercise):
        """A rejected exercise adds no Question rows."""
        store.add_exercise(exercise)
        before = _question_count(store)

        other = Exercise(7, "Other", datetime(2025, 1, 1, tzinfo=timezone.utc))
        other.add_question("extra", "Should not be stored", 5)
        with pytest.raises(ExerciseAlreadyExistsError):
            store.add_exercise(other)

        assert _question_count(store) == before
        assert store.load_exercises()[0].name == "SQL joins"

    def test_exercise_without_questions(self, store):
        empty = Exercise(1, "Reading", datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert store.add_exercise(empty) == 1
        assert store.load_exercises()[0].questions == []


class TestLoadExercises:
    """Tests for GradeStore.load_exercises."""

    def test_round_trip_with_questions_passed_in(self, store):
        """Questions given to the constructor are numbered like the stored rows."""
        ex = Exercise(
            4,
            "Views",
            datetime(2024, 6, 1, tzinfo=timezone.utc),
            questions=[Question("create", "Create a view", 3), Question("drop", "Drop it", 2)],
        )
        assert [q.question_id for q in ex.questions] == [0, 1]

        store.add_exercise(ex)

        assert store.load_exercises() == [ex]

    def test_empty_database(self, store):
        assert store.load_exercises() == []

    def test_round_trip(self, store, exercise):
        """Loaded exercise equals the one added, questions included."""
        store.add_exercise(exercise)

        loaded = store.load_exercises()

        assert loaded == [exercise]

    def test_due_date_is_aware_utc(self, store, exercise):
        store.add_exercise(exercise)
        due = store.load_exercises()[0].due_date
        assert due.tzinfo is not None
        assert due == datetime(2024, 3, 15, 23, 59, tzinfo=timezone.utc)

    def test_sorted_by_id(self, store):
        """Exercises come back in ascending id order regardless of insertion."""
        for exercise_id in (30, 10, 20):
            ex = Exercise(exercise_id, f"ex{exercise_id}", datetime(2024, 1, 1, tzinfo=timezone.utc))
            ex.add_question("q", "d", 1)
            store.add_exercise(ex)

        assert [e.exercise_id for e in store.load_exercises()] == [10, 20, 30]

    def test_questions_stay_with_their_exercise(self, store, exercise):
        other = Exercise(3, "Indexes", datetime(2024, 2, 1, tzinfo=timezone.utc))
        other.add_question("btree", "Explain B-trees", 4)
        store.add_exercise(exercise)
        store.add_exercise(other)

        by_id = {e.exercise_id: e for e in store.load_exercises()}

        assert [q.name for q in by_id[3].questions] == ["btree"]
        assert [q.name for q in by_id[7].questions] == ["inner", "outer", "group"]
