"""Service layer for the dashboard catalogue and live exams."""
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from examhall.exam_session import Question
from examhall.models.db.category import Category
from examhall.models.db.exam import Exam, ExamQuestion
from examhall.utils import ensure_utc

# Dashboard sections shown but not yet open
LOCKED_CATEGORIES = frozenset({"Chit Chat", "AI Practice", "Leaderboard"})


def list_categories(db: DBSession) -> list[Category]:
    """Get all categories in creation order."""
    return list(
        db.execute(select(Category).order_by(Category.created_at, Category.id))
        .scalars()
        .all()
    )


def list_active_exams(db: DBSession) -> list[Exam]:
    """Get active live exams, latest start first."""
    return list(
        db.execute(
            select(Exam)
            .where(Exam.is_active.is_(True))
            .order_by(Exam.start_time.desc())
        )
        .scalars()
        .all()
    )


def get_exam(db: DBSession, exam_id: int) -> Exam:
    """Get live exam by ID or raise 404."""
    exam = db.get(Exam, exam_id)
    if exam is None or not exam.is_active:
        raise HTTPException(status_code=404, detail="Exam not found")
    return exam


def time_until_start(
    start_time: datetime, now: datetime | None = None
) -> tuple[int, int] | None:
    """
    Hours and minutes left before an exam opens.
    Returns None once the exam has started.
    """
    now = now or datetime.now(timezone.utc)
    diff = (ensure_utc(start_time) - now).total_seconds()
    if diff < 0:
        return None
    hours = int(diff // 3600)
    minutes = int((diff % 3600) // 60)
    return hours, minutes


def to_session_question(question: ExamQuestion, position: int) -> Question:
    return Question(
        id=question.id,
        position=position,
        text=question.question_text,
        options=tuple(question.options),
        correct_option=question.correct_answer,
        marks=question.marks,
    )


def load_live_questions(db: DBSession, exam_id: int) -> tuple[Exam, list[Question]]:
    """Load an exam and its questions in order for a session."""
    exam = get_exam(db, exam_id)
    rows = db.execute(
        select(ExamQuestion)
        .where(ExamQuestion.exam_id == exam_id)
        .order_by(ExamQuestion.order_number, ExamQuestion.id)
    ).scalars().all()
    return exam, [to_session_question(row, index) for index, row in enumerate(rows)]


def serialize_exam(exam: Exam, now: datetime | None = None) -> dict[str, object]:
    """Convert exam to dashboard card payload."""
    starts_in = time_until_start(exam.start_time, now)
    return {
        "id": exam.id,
        "title": exam.title,
        "description": exam.description,
        "durationMinutes": exam.duration_minutes,
        "totalMarks": exam.total_marks,
        "passingMarks": exam.passing_marks,
        "startTime": exam.start_time.isoformat(),
        "isRunning": starts_in is None,
        "startsIn": (
            {"hours": starts_in[0], "minutes": starts_in[1]} if starts_in else None
        ),
    }


def serialize_category(category: Category) -> dict[str, object]:
    return {
        "id": category.id,
        "name": category.name,
        "nameBn": category.name_bn,
        "icon": category.icon,
        "color": category.color,
        "locked": category.name in LOCKED_CATEGORIES,
    }
