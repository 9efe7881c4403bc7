"""
Archived exam models: past papers used for timed practice.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examhall.database import Base


def _load_json(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return default


def _dump_json(value: Any) -> str | None:
    return json.dumps(value, ensure_ascii=False) if value else None


class ArchivedExam(Base):
    """
    Past exam paper with per-category statistics.
    """

    __tablename__ = "archived_exams"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    exam_code: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    exam_title: Mapped[str] = mapped_column(Text, nullable=False)
    exam_date: Mapped[str] = mapped_column(String(50), default="", nullable=False)

    total_questions: Mapped[int] = mapped_column(default=0, nullable=False)
    questions_with_images: Mapped[int] = mapped_column(default=0, nullable=False)
    explanations_found: Mapped[int] = mapped_column(default=0, nullable=False)
    explanations_missing: Mapped[int] = mapped_column(default=0, nullable=False)

    # Section key -> label, and label -> question count (stored as JSON)
    categories_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_stats_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    questions: Mapped[list["ArchivedQuestion"]] = relationship(
        "ArchivedQuestion",
        back_populates="exam",
        cascade="all, delete-orphan",
        order_by="ArchivedQuestion.question_number",
    )

    @property
    def categories(self) -> dict[str, str]:
        return _load_json(self.categories_json, {})

    @categories.setter
    def categories(self, value: dict[str, str] | None) -> None:
        self.categories_json = _dump_json(value)

    @property
    def category_stats(self) -> dict[str, int]:
        return _load_json(self.category_stats_json, {})

    @category_stats.setter
    def category_stats(self, value: dict[str, int] | None) -> None:
        self.category_stats_json = _dump_json(value)


class ArchivedQuestion(Base):
    """
    Question of an archived exam, with explanation for review.
    correct_answer holds the option number (1..4).
    """

    __tablename__ = "archived_questions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    archived_exam_id: Mapped[int] = mapped_column(
        ForeignKey("archived_exams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_number: Mapped[int] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String(255), default="Unknown", nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    correct_answer: Mapped[int] = mapped_column(nullable=False)
    explain_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Stored as JSON
    options_json: Mapped[str] = mapped_column(Text, nullable=False)
    question_images_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    explanation_images_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    exam: Mapped["ArchivedExam"] = relationship("ArchivedExam", back_populates="questions")

    @property
    def options(self) -> list[str]:
        return _load_json(self.options_json, [])

    @options.setter
    def options(self, value: list[str]) -> None:
        self.options_json = json.dumps(list(value), ensure_ascii=False)

    @property
    def question_images(self) -> list[dict[str, Any]]:
        return _load_json(self.question_images_json, [])

    @question_images.setter
    def question_images(self, value: list[dict[str, Any]] | None) -> None:
        self.question_images_json = _dump_json(value)

    @property
    def explanation_images(self) -> list[dict[str, Any]]:
        return _load_json(self.explanation_images_json, [])

    @explanation_images.setter
    def explanation_images(self, value: list[dict[str, Any]] | None) -> None:
        self.explanation_images_json = _dump_json(value)


class PracticeAnswer(Base):
    """
    Answer committed while practising an archived exam.
    One row per question left with a selection.
    """

    __tablename__ = "practice_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    archived_exam_id: Mapped[int] = mapped_column(
        ForeignKey("archived_exams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    archived_question_id: Mapped[int] = mapped_column(
        ForeignKey("archived_questions.id", ondelete="CASCADE"), nullable=False
    )
    selected_answer: Mapped[int] = mapped_column(nullable=False)
    is_correct: Mapped[bool] = mapped_column(nullable=False)
    time_spent_seconds: Mapped[int] = mapped_column(default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
