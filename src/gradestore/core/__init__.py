"""Core domain: records and the GradeStore facade."""

from gradestore.core.grade_store import GradeStore
from gradestore.core.models import UNASSIGNED_ID, Exercise, Question, Submission, User

__all__ = [
    "GradeStore",
    "UNASSIGNED_ID",
    "Exercise",
    "Question",
    "Submission",
    "User",
]
