"""Archived exam browsing endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DbSession

from examhall.database import get_db
from examhall.services.archive_service import (
    ALL_CATEGORIES,
    exam_categories,
    get_archived_exam,
    get_archived_question,
    list_archived_exams,
    list_archived_questions,
    serialize_archived_exam,
    serialize_archived_question,
)

router = APIRouter(prefix="/api/archive", tags=["archive"])


@router.get("")
def list_exams(
    db: Annotated[DbSession, Depends(get_db)],
    q: str | None = Query(None, max_length=200),
) -> list[dict[str, object]]:
    """List archived exams, optionally searching title and date."""
    return [serialize_archived_exam(exam) for exam in list_archived_exams(db, q)]


@router.get("/{exam_id}")
def exam_detail(
    exam_id: int,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Get archived exam metadata and the category filter choices."""
    exam = get_archived_exam(db, exam_id)
    payload = serialize_archived_exam(exam)
    payload["categoryFilter"] = [ALL_CATEGORIES, *exam_categories(exam)]
    return payload


@router.get("/{exam_id}/questions")
def list_questions(
    exam_id: int,
    db: Annotated[DbSession, Depends(get_db)],
    category: str = Query(ALL_CATEGORIES),
) -> dict[str, object]:
    """List questions of an archived exam filtered by category."""
    get_archived_exam(db, exam_id)
    questions = list_archived_questions(db, exam_id, category)
    return {
        "examId": exam_id,
        "category": category,
        "count": len(questions),
        "questions": [serialize_archived_question(q) for q in questions],
    }


@router.get("/{exam_id}/questions/{question_id}")
def question_detail(
    exam_id: int,
    question_id: int,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Get one question with its correct option and explanation."""
    get_archived_exam(db, exam_id)
    question = get_archived_question(db, exam_id, question_id)
    return serialize_archived_question(question, include_explanation=True)
