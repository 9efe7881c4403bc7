"""User profile routes."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session as DbSession

from examhall.database import get_db
from examhall.dependencies.auth import get_current_user
from examhall.models.auth import ProfileUpdateRequest, UserResponse
from examhall.models.db.user import User
from examhall.services.attempt_service import (
    get_attempt,
    get_attempts_by_user,
    get_practice_answers,
    serialize_attempt,
)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current user's profile."""
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> User:
    """Update current user's profile."""
    if data.full_name is not None:
        # Empty string clears the name
        current_user.full_name = data.full_name.strip() or None

    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/me/attempts")
def list_my_attempts(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
    exam_id: int | None = Query(None, alias="examId"),
    status: str | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> list[dict[str, object]]:
    """List live exam attempts of the current user, newest first."""
    attempts = get_attempts_by_user(
        db, current_user.id, exam_id=exam_id, status=status, limit=limit, offset=offset
    )
    return [serialize_attempt(attempt) for attempt in attempts]


@router.get("/me/attempts/{attempt_id}")
def get_my_attempt(
    attempt_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Get one live exam attempt with the answers given."""
    attempt = get_attempt(db, attempt_id)
    if attempt is None or attempt.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Attempt not found")

    payload = serialize_attempt(attempt)
    payload["answers"] = [
        {
            "questionId": answer.question_id,
            "selectedOption": answer.selected_answer,
            "isCorrect": answer.is_correct,
            "marksObtained": answer.marks_obtained,
        }
        for answer in attempt.answers
    ]
    return payload


@router.get("/me/practice")
def list_my_practice_answers(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
    exam_id: int | None = Query(None, alias="examId"),
) -> list[dict[str, object]]:
    """List answers committed while practising archived exams, oldest first."""
    return [
        {
            "archivedExamId": answer.archived_exam_id,
            "questionId": answer.archived_question_id,
            "selectedOption": answer.selected_answer,
            "isCorrect": answer.is_correct,
            "timeSpentSeconds": answer.time_spent_seconds,
            "createdAt": answer.created_at.isoformat(),
        }
        for answer in get_practice_answers(db, current_user.id, exam_id)
    ]
