"""Exam session endpoints: start, answer, navigate, submit, review."""
from typing import Annotated

from fastapi import APIRouter, Depends, status

from examhall.dependencies.auth import get_current_user
from examhall.exam_session import SessionMode
from examhall.models import (
    AnswerSelect,
    GoToQuestion,
    MessageResponse,
    ReviewEntry,
    SessionCreate,
    SessionQuestion,
    SessionResultResponse,
    SessionStateResponse,
)
from examhall.models.db.user import User
from examhall.services.session_service import ActiveSession, SessionRegistry, get_registry
from examhall.utils import format_countdown, validate_id

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

Registry = Annotated[SessionRegistry, Depends(get_registry)]
CurrentUser = Annotated[User, Depends(get_current_user)]


def _state_response(entry: ActiveSession) -> SessionStateResponse:
    """Convert an active session to its render snapshot."""
    session = entry.session
    question = None
    if not session.is_completed:
        current = session.current_question
        question = SessionQuestion(
            id=current.id,
            position=current.position,
            category=current.category,
            text=current.text,
            options=list(current.options),
            marks=current.marks,
            images=list(current.question_images),
        )

    remaining = session.time_remaining * entry.tick_seconds
    return SessionStateResponse(
        sessionId=entry.id,
        mode=entry.mode.value,
        examId=entry.exam_id,
        examTitle=entry.exam_title,
        status=session.status.value,
        currentIndex=session.current_index,
        questionCount=session.question_count,
        timeRemaining=remaining,
        timeRemainingDisplay=format_countdown(remaining),
        timerScope=session.config.timer_scope.value,
        answers={str(qid): option for qid, option in session.answers.items()},
        answeredCount=session.answered_count,
        question=question,
    )


def _result_response(entry: ActiveSession) -> SessionResultResponse:
    """Convert a completed session to score and review payload."""
    result = entry.session.result()
    review = [
        ReviewEntry(
            questionId=item.question.id,
            position=item.question.position,
            category=item.question.category,
            text=item.question.text,
            options=list(item.question.options),
            selectedOption=item.selected_option,
            correctOption=item.question.correct_option,
            isCorrect=item.is_correct,
            timeSpentSeconds=item.time_spent * entry.tick_seconds,
            explanation=item.question.explanation,
            explanationImages=list(item.question.explanation_images),
        )
        for item in result.review
    ]
    return SessionResultResponse(
        sessionId=entry.id,
        mode=entry.mode.value,
        examId=entry.exam_id,
        examTitle=entry.exam_title,
        score=result.score,
        answeredCount=result.answered_count,
        questionCount=result.question_count,
        marksObtained=result.marks_obtained,
        totalMarks=result.total_marks,
        percentage=result.percentage,
        passed=result.passed,
        review=review,
    )


@router.post("", response_model=SessionStateResponse, status_code=status.HTTP_201_CREATED)
def start_session(
    payload: SessionCreate,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionStateResponse:
    """Start a live exam or an archived practice session."""
    return registry.start(
        current_user.id, SessionMode(payload.mode), payload.examId, view=_state_response
    )


@router.get("/{session_id}", response_model=SessionStateResponse)
def get_session(
    session_id: str,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionStateResponse:
    """Get the current question, position and time remaining."""
    session_id = validate_id("sessionId", session_id)
    return registry.get(session_id, current_user.id, view=_state_response)


@router.post("/{session_id}/answer", response_model=SessionStateResponse)
def select_answer(
    session_id: str,
    payload: AnswerSelect,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionStateResponse:
    """Select an option for the current question."""
    session_id = validate_id("sessionId", session_id)
    return registry.select_answer(
        session_id, current_user.id, payload.option, view=_state_response
    )


@router.post("/{session_id}/advance", response_model=SessionStateResponse)
def advance(
    session_id: str,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionStateResponse:
    """Go to the next question; submits when on the last one."""
    session_id = validate_id("sessionId", session_id)
    return registry.advance(session_id, current_user.id, view=_state_response)


@router.post("/{session_id}/previous", response_model=SessionStateResponse)
def previous(
    session_id: str,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionStateResponse:
    """Go back one question (live exams only)."""
    session_id = validate_id("sessionId", session_id)
    return registry.previous(session_id, current_user.id, view=_state_response)


@router.post("/{session_id}/goto", response_model=SessionStateResponse)
def go_to(
    session_id: str,
    payload: GoToQuestion,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionStateResponse:
    """Jump to a question by index (live exams only)."""
    session_id = validate_id("sessionId", session_id)
    return registry.go_to(
        session_id, current_user.id, payload.index, view=_state_response
    )


@router.post("/{session_id}/submit", response_model=SessionResultResponse)
def submit(
    session_id: str,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionResultResponse:
    """Submit the exam and return the score."""
    session_id = validate_id("sessionId", session_id)
    return registry.submit(session_id, current_user.id, view=_result_response)


@router.get("/{session_id}/result", response_model=SessionResultResponse)
def get_result(
    session_id: str,
    current_user: CurrentUser,
    registry: Registry,
) -> SessionResultResponse:
    """Get final score and per-question review of a completed session."""
    session_id = validate_id("sessionId", session_id)
    return registry.get(session_id, current_user.id, view=_result_response)


@router.delete("/{session_id}", response_model=MessageResponse)
def discard_session(
    session_id: str,
    current_user: CurrentUser,
    registry: Registry,
) -> MessageResponse:
    """Leave the session; unfinished live attempts are marked abandoned."""
    session_id = validate_id("sessionId", session_id)
    registry.discard(session_id, current_user.id)
    return MessageResponse(message="Session closed")
