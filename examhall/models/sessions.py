"""Exam session Pydantic models."""
from typing import Literal

from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    """Model for starting an exam session."""

    mode: Literal["live", "archive"]
    examId: int = Field(..., ge=1)


class AnswerSelect(BaseModel):
    """Model for selecting an option on the current question."""

    option: int = Field(..., ge=1, le=4)


class GoToQuestion(BaseModel):
    """Model for jumping to a question (live exams only)."""

    index: int = Field(..., ge=0)


class SessionQuestion(BaseModel):
    id: int
    position: int
    category: str | None = None
    text: str
    options: list[str]
    marks: int
    images: list[dict[str, object]] = []


class SessionStateResponse(BaseModel):
    """Snapshot of a session for rendering."""

    sessionId: str
    mode: str
    examId: int
    examTitle: str
    status: str
    currentIndex: int
    questionCount: int
    timeRemaining: int
    timeRemainingDisplay: str
    timerScope: str
    answers: dict[str, int]
    answeredCount: int
    question: SessionQuestion | None = None


class ReviewEntry(BaseModel):
    questionId: int
    position: int
    category: str | None = None
    text: str
    options: list[str]
    selectedOption: int | None = None
    correctOption: int
    isCorrect: bool
    timeSpentSeconds: int
    explanation: str | None = None
    explanationImages: list[dict[str, object]] = []


class SessionResultResponse(BaseModel):
    """Final score and per-question review of a completed session."""

    sessionId: str
    mode: str
    examId: int
    examTitle: str
    score: int
    answeredCount: int
    questionCount: int
    marksObtained: int
    totalMarks: int
    percentage: float
    passed: bool
    review: list[ReviewEntry]
