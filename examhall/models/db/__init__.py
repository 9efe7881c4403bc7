"""Database models."""
from examhall.models.db.user import User, Session
from examhall.models.db.category import Category
from examhall.models.db.exam import Exam, ExamQuestion
from examhall.models.db.attempt import ExamAttempt, UserAnswer, AttemptStatus
from examhall.models.db.archive import ArchivedExam, ArchivedQuestion, PracticeAnswer

__all__ = [
    "User",
    "Session",
    "Category",
    "Exam",
    "ExamQuestion",
    "ExamAttempt",
    "UserAnswer",
    "AttemptStatus",
    "ArchivedExam",
    "ArchivedQuestion",
    "PracticeAnswer",
]
