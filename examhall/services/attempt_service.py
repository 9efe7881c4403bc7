"""Service layer for exam attempts and practice answers."""
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession, joinedload

from examhall.exam_session import AnswerRecord, SessionResult
from examhall.models.db.archive import PracticeAnswer
from examhall.models.db.attempt import AttemptStatus, ExamAttempt, UserAnswer


def start_attempt(
    db: DBSession,
    exam_id: int,
    user_id: int,
    total_marks: int,
    question_count: int = 0,
) -> ExamAttempt:
    """Create an in-progress attempt for a live exam."""
    attempt = ExamAttempt(
        exam_id=exam_id,
        user_id=user_id,
        total_marks=total_marks,
        question_count=question_count,
        status=AttemptStatus.IN_PROGRESS.value,
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    return attempt


def finish_attempt(
    db: DBSession,
    attempt_id: int,
    result: SessionResult,
) -> ExamAttempt:
    """
    Store the answers of a completed session and its final score.
    Only answered questions get a user_answers row.
    """
    attempt = db.get(ExamAttempt, attempt_id)
    if not attempt:
        raise HTTPException(status_code=404, detail="Attempt not found")

    existing = {
        answer.question_id
        for answer in db.execute(
            select(UserAnswer).where(UserAnswer.attempt_id == attempt_id)
        ).scalars()
    }

    for item in result.review:
        if item.selected_option is None or item.question.id in existing:
            continue
        db.add(
            UserAnswer(
                attempt_id=attempt_id,
                question_id=item.question.id,
                selected_answer=item.selected_option,
                is_correct=item.is_correct,
                marks_obtained=item.question.marks if item.is_correct else 0,
            )
        )

    attempt.status = AttemptStatus.COMPLETED.value
    attempt.completed_at = datetime.now(timezone.utc)
    attempt.score = result.marks_obtained
    attempt.question_count = result.question_count
    attempt.answered_count = result.answered_count
    attempt.correct_count = result.score

    db.commit()
    db.refresh(attempt)
    return attempt


def abandon_attempt(db: DBSession, attempt_id: int) -> ExamAttempt | None:
    """Mark an in-progress attempt as abandoned."""
    attempt = db.get(ExamAttempt, attempt_id)
    if not attempt or attempt.status != AttemptStatus.IN_PROGRESS.value:
        return attempt

    attempt.status = AttemptStatus.ABANDONED.value
    db.commit()
    db.refresh(attempt)
    return attempt


def record_practice_answer(
    db: DBSession,
    user_id: int,
    archived_exam_id: int,
    record: AnswerRecord,
    time_spent_seconds: int,
) -> PracticeAnswer:
    """Store an answer committed while practising an archived exam."""
    answer = PracticeAnswer(
        user_id=user_id,
        archived_exam_id=archived_exam_id,
        archived_question_id=record.question.id,
        selected_answer=record.option,
        is_correct=record.is_correct,
        time_spent_seconds=time_spent_seconds,
    )
    db.add(answer)
    db.commit()
    db.refresh(answer)
    return answer


def get_attempt(db: DBSession, attempt_id: int) -> ExamAttempt | None:
    """Get attempt by ID with answers loaded."""
    return db.execute(
        select(ExamAttempt)
        .options(joinedload(ExamAttempt.answers))
        .where(ExamAttempt.id == attempt_id)
    ).unique().scalar_one_or_none()


def get_attempts_by_user(
    db: DBSession,
    user_id: int,
    exam_id: int | None = None,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[ExamAttempt]:
    """
    Get attempts for a user, optionally filtered by exam_id and status.
    """
    query = select(ExamAttempt).where(ExamAttempt.user_id == user_id)

    if exam_id:
        query = query.where(ExamAttempt.exam_id == exam_id)
    if status:
        query = query.where(ExamAttempt.status == status)

    query = query.order_by(ExamAttempt.started_at.desc()).limit(limit).offset(offset)

    return list(db.execute(query).scalars().all())


def get_practice_answers(
    db: DBSession, user_id: int, archived_exam_id: int | None = None
) -> list[PracticeAnswer]:
    """Get practice answers of a user, oldest first."""
    query = select(PracticeAnswer).where(PracticeAnswer.user_id == user_id)
    if archived_exam_id:
        query = query.where(PracticeAnswer.archived_exam_id == archived_exam_id)
    return list(
        db.execute(query.order_by(PracticeAnswer.created_at, PracticeAnswer.id))
        .scalars()
        .all()
    )


def serialize_attempt(attempt: ExamAttempt) -> dict[str, object]:
    return {
        "id": attempt.id,
        "examId": attempt.exam_id,
        "status": attempt.status,
        "startedAt": attempt.started_at.isoformat(),
        "completedAt": attempt.completed_at.isoformat() if attempt.completed_at else None,
        "score": attempt.score,
        "totalMarks": attempt.total_marks,
        "questionCount": attempt.question_count,
        "answeredCount": attempt.answered_count,
        "correctCount": attempt.correct_count,
        "percentCorrect": round(attempt.percent_correct, 2),
    }
