"""Service layer for archived exams (past papers)."""
from fastapi import HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session as DBSession

from examhall.exam_session import Question
from examhall.models.db.archive import ArchivedExam, ArchivedQuestion

ALL_CATEGORIES = "all"


def list_archived_exams(db: DBSession, query: str | None = None) -> list[ArchivedExam]:
    """
    Get active archived exams, newest first.
    Optional query matches title or exam date, case-insensitively.
    """
    stmt = select(ArchivedExam).where(ArchivedExam.is_active.is_(True))

    if query and query.strip():
        pattern = f"%{query.strip()}%"
        stmt = stmt.where(
            or_(
                ArchivedExam.exam_title.ilike(pattern),
                ArchivedExam.exam_date.ilike(pattern),
            )
        )

    stmt = stmt.order_by(ArchivedExam.created_at.desc(), ArchivedExam.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_archived_exam(db: DBSession, exam_id: int) -> ArchivedExam:
    """Get archived exam by ID or raise 404."""
    exam = db.get(ArchivedExam, exam_id)
    if exam is None or not exam.is_active:
        raise HTTPException(status_code=404, detail="Exam not found")
    return exam


def list_archived_questions(
    db: DBSession, exam_id: int, category: str | None = None
) -> list[ArchivedQuestion]:
    """Get questions of an archived exam, optionally for one category."""
    stmt = select(ArchivedQuestion).where(ArchivedQuestion.archived_exam_id == exam_id)
    if category and category != ALL_CATEGORIES:
        stmt = stmt.where(ArchivedQuestion.category == category)
    stmt = stmt.order_by(ArchivedQuestion.question_number, ArchivedQuestion.id)
    return list(db.execute(stmt).scalars().all())


def get_archived_question(
    db: DBSession, exam_id: int, question_id: int
) -> ArchivedQuestion:
    """Get a single question of an archived exam or raise 404."""
    question = db.get(ArchivedQuestion, question_id)
    if question is None or question.archived_exam_id != exam_id:
        raise HTTPException(status_code=404, detail="Question not found")
    return question


def exam_categories(exam: ArchivedExam) -> list[str]:
    """Category labels offered by the question browser filter."""
    return list(exam.category_stats.keys())


def to_session_question(question: ArchivedQuestion, position: int) -> Question:
    return Question(
        id=question.id,
        position=position,
        text=question.question_text,
        options=tuple(question.options),
        correct_option=question.correct_answer,
        category=question.category,
        explanation=question.explanation,
        question_images=tuple(question.question_images),
        explanation_images=tuple(question.explanation_images),
    )


def load_archive_questions(
    db: DBSession, exam_id: int
) -> tuple[ArchivedExam, list[Question]]:
    """Load an archived exam and its questions in order for a practice session."""
    exam = get_archived_exam(db, exam_id)
    rows = list_archived_questions(db, exam_id)
    return exam, [to_session_question(row, index) for index, row in enumerate(rows)]


def serialize_archived_exam(exam: ArchivedExam) -> dict[str, object]:
    """Convert archived exam to list/detail payload."""
    return {
        "id": exam.id,
        "examCode": exam.exam_code,
        "title": exam.exam_title,
        "examDate": exam.exam_date,
        "totalQuestions": exam.total_questions,
        "questionsWithImages": exam.questions_with_images,
        "explanationsFound": exam.explanations_found,
        "explanationsMissing": exam.explanations_missing,
        "categories": exam.categories,
        "categoryStats": exam.category_stats,
    }


def serialize_archived_question(
    question: ArchivedQuestion, include_explanation: bool = False
) -> dict[str, object]:
    """Convert archived question to browser payload."""
    payload: dict[str, object] = {
        "id": question.id,
        "questionNumber": question.question_number,
        "category": question.category,
        "text": question.question_text,
        "images": question.question_images,
        "options": question.options,
        "correctOption": question.correct_answer,
        "hasExplanation": bool(question.explanation),
    }
    if include_explanation:
        payload["explanation"] = question.explanation
        payload["explanationImages"] = question.explanation_images
    return payload
