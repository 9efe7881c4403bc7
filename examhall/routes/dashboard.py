"""Dashboard endpoints: categories and live exams."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DbSession

from examhall.database import get_db
from examhall.dependencies.auth import get_optional_user
from examhall.models.db.user import User
from examhall.services.exam_service import (
    get_exam,
    list_active_exams,
    list_categories,
    serialize_category,
    serialize_exam,
)

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard")
def dashboard(
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Everything the dashboard renders in one payload."""
    profile = None
    if current_user is not None:
        profile = {
            "id": current_user.id,
            "username": current_user.username,
            "fullName": current_user.full_name,
        }
    return {
        "profile": profile,
        "categories": [serialize_category(c) for c in list_categories(db)],
        "exams": [serialize_exam(e) for e in list_active_exams(db)],
    }


@router.get("/categories")
def categories(
    db: Annotated[DbSession, Depends(get_db)],
) -> list[dict[str, object]]:
    """List dashboard categories."""
    return [serialize_category(category) for category in list_categories(db)]


@router.get("/exams")
def exams(
    db: Annotated[DbSession, Depends(get_db)],
) -> list[dict[str, object]]:
    """List active live exams, latest start first."""
    return [serialize_exam(exam) for exam in list_active_exams(db)]


@router.get("/exams/{exam_id}")
def exam_detail(
    exam_id: int,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Get a live exam card with its question count."""
    exam = get_exam(db, exam_id)
    payload = serialize_exam(exam)
    payload["questionCount"] = len(exam.questions)
    return payload
