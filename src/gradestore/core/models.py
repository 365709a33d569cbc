"""Domain records for users, exercises and submissions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Submission id meaning "let the store assign one"
UNASSIGNED_ID = -1


@dataclass
class User:
    """A course participant. The password is passed separately on upsert."""

    username: str
    firstname: str
    lastname: str


@dataclass
class Question:
    """A scored sub-part of an exercise.

    question_id is the 0-based position within the exercise.
    """

    name: str
    desc: str
    points: int
    question_id: int = 0


@dataclass
class Exercise:
    """A gradable assignment with a due date and ordered questions."""

    exercise_id: int
    name: str
    due_date: datetime
    questions: list[Question] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Question ids follow list position, matching what the store writes
        for question_id, question in enumerate(self.questions):
            question.question_id = question_id

    def add_question(self, name: str, desc: str, points: int) -> Question:
        """Append a question, assigning the next sequential question id."""
        question = Question(
            name=name,
            desc=desc,
            points=points,
            question_id=len(self.questions),
        )
        self.questions.append(question)
        return question

    @property
    def total_points(self) -> int:
        """Sum of points over all questions."""
        return sum(q.points for q in self.questions)


@dataclass
class Submission:
    """One user's attempt at an exercise, with one grade per question."""

    submission_id: int
    user: User
    exercise: Exercise
    submission_time: datetime
    grades: list[float] = field(default_factory=list)

    @property
    def total_grade(self) -> float:
        return sum(self.grades)
