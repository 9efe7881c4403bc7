import logging
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from examhall.exam_session import SessionMode, SessionStatus
from examhall.models.db import AttemptStatus, ExamAttempt, PracticeAnswer, UserAnswer
from examhall.services import attempt_service
from examhall.services.cleanup_service import cleanup_abandoned_attempts, start_session_ticker
from examhall.services.session_service import SessionRegistry


def test_start_archive_session_loads_questions_in_order(registry, user, archived_exam) -> None:
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)

    session = entry.session
    assert entry.exam_title == archived_exam.exam_title
    assert entry.attempt_id is None
    assert session.status is SessionStatus.IN_PROGRESS
    assert [q.text for q in session.questions] == [
        "Archive question 1",
        "Archive question 2",
        "Archive question 3",
    ]
    assert session.time_remaining == 3
    assert len(registry) == 1


def test_start_unknown_exam_is_404(registry, user) -> None:
    with pytest.raises(HTTPException) as exc_info:
        registry.start(user.id, SessionMode.ARCHIVE, 999)
    assert exc_info.value.status_code == 404
    assert len(registry) == 0


def test_start_live_session_creates_attempt(registry, db, user, live_exam) -> None:
    entry = registry.start(user.id, SessionMode.LIVE, live_exam.id)

    assert entry.attempt_id is not None
    assert entry.session.time_remaining == 60
    attempt = db.get(ExamAttempt, entry.attempt_id)
    assert attempt.status == AttemptStatus.IN_PROGRESS.value
    assert attempt.total_marks == 4
    assert attempt.question_count == 3


def test_other_users_session_is_not_found(registry, user, other_user, archived_exam) -> None:
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)

    with pytest.raises(HTTPException) as exc_info:
        registry.get(entry.id, other_user.id)
    assert exc_info.value.status_code == 404

    with pytest.raises(HTTPException):
        registry.select_answer(entry.id, other_user.id, 1)


def test_invalid_actions_map_to_http_errors(registry, user, archived_exam) -> None:
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)

    with pytest.raises(HTTPException) as exc_info:
        registry.previous(entry.id, user.id)
    assert exc_info.value.status_code == 400

    with pytest.raises(HTTPException) as exc_info:
        registry.submit(entry.id, user.id)
    assert exc_info.value.status_code == 400

    with pytest.raises(HTTPException) as exc_info:
        registry.advance(entry.id, user.id)
    assert exc_info.value.status_code == 409
    assert entry.session.current_index == 0


def test_view_renders_under_registry(registry, user, archived_exam) -> None:
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)
    registry.select_answer(entry.id, user.id, 1)
    index = registry.advance(entry.id, user.id, view=lambda e: e.session.current_index)
    assert index == 1


def test_archive_answers_are_recorded_per_question(registry, db, user, archived_exam) -> None:
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)

    registry.select_answer(entry.id, user.id, 1)
    registry.tick_all()
    registry.advance(entry.id, user.id)
    for _ in range(3):
        registry.tick_all()  # times out unanswered, no row
    registry.select_answer(entry.id, user.id, 2)
    registry.advance(entry.id, user.id)

    rows = db.execute(select(PracticeAnswer).order_by(PracticeAnswer.id)).scalars().all()
    assert [(row.selected_answer, row.is_correct) for row in rows] == [(1, True), (2, False)]
    assert rows[0].time_spent_seconds == 1
    assert entry.session.is_completed
    assert entry.session.score == 1


def test_tick_all_advances_expired_questions(registry, user, archived_exam) -> None:
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)

    assert registry.tick_all() == 1
    assert registry.tick_all() == 1
    assert entry.session.current_index == 0
    registry.tick_all()
    assert entry.session.current_index == 1
    assert entry.session.time_remaining == 3


def test_tick_all_skips_completed_sessions(registry, user, live_exam) -> None:
    entry = registry.start(user.id, SessionMode.LIVE, live_exam.id)
    registry.submit(entry.id, user.id)
    assert registry.tick_all() == 0


def test_live_expiry_finishes_attempt(registry, db, user, live_exam) -> None:
    entry = registry.start(user.id, SessionMode.LIVE, live_exam.id)
    registry.select_answer(entry.id, user.id, 1)
    registry.go_to(entry.id, user.id, 2)
    registry.select_answer(entry.id, user.id, 1)

    for _ in range(60):
        registry.tick_all()

    assert entry.session.is_completed
    attempt = db.get(ExamAttempt, entry.attempt_id)
    db.refresh(attempt)
    assert attempt.status == AttemptStatus.COMPLETED.value
    assert attempt.score == 2
    assert attempt.correct_count == 1
    assert attempt.answered_count == 2
    answers = db.execute(
        select(UserAnswer).where(UserAnswer.attempt_id == attempt.id)
    ).scalars().all()
    assert len(answers) == 2


def test_discard_abandons_unfinished_live_attempt(registry, db, user, live_exam) -> None:
    entry = registry.start(user.id, SessionMode.LIVE, live_exam.id)
    registry.discard(entry.id, user.id)

    assert len(registry) == 0
    attempt = db.get(ExamAttempt, entry.attempt_id)
    assert attempt.status == AttemptStatus.ABANDONED.value
    with pytest.raises(HTTPException):
        registry.get(entry.id, user.id)


def test_completed_sessions_are_pruned_after_ttl(registry, user, live_exam) -> None:
    entry = registry.start(user.id, SessionMode.LIVE, live_exam.id)
    registry.submit(entry.id, user.id)

    registry.tick_all(now=datetime.now(timezone.utc))
    assert len(registry) == 1

    registry.tick_all(now=datetime.now(timezone.utc) + timedelta(days=1))
    assert len(registry) == 0


def test_cleanup_removes_old_abandoned_attempts(session_factory, db, user, live_exam) -> None:
    old = ExamAttempt(
        exam_id=live_exam.id,
        user_id=user.id,
        total_marks=4,
        status=AttemptStatus.ABANDONED.value,
        started_at=datetime.now(timezone.utc) - timedelta(days=365),
    )
    recent = ExamAttempt(
        exam_id=live_exam.id,
        user_id=user.id,
        total_marks=4,
        status=AttemptStatus.ABANDONED.value,
    )
    db.add_all([old, recent])
    db.commit()

    assert cleanup_abandoned_attempts(session_factory) == 1
    remaining = db.execute(select(ExamAttempt.id)).scalars().all()
    assert remaining == [recent.id]


def test_failed_result_write_keeps_score(registry, db, user, live_exam, monkeypatch, caplog) -> None:
    def fail(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(attempt_service, "finish_attempt", fail)
    entry = registry.start(user.id, SessionMode.LIVE, live_exam.id)
    registry.select_answer(entry.id, user.id, 1)

    with caplog.at_level(logging.ERROR, logger="examhall.services.session_service"):
        result = registry.submit(entry.id, user.id, view=lambda e: e.session.result())

    assert result.score == 1
    assert result.marks_obtained == 2
    assert entry.session.is_completed
    assert "Failed to persist session data" in caplog.text
    attempt = db.get(ExamAttempt, entry.attempt_id)
    assert attempt.status == AttemptStatus.IN_PROGRESS.value


def test_failed_practice_write_still_advances(registry, db, user, archived_exam, monkeypatch, caplog) -> None:
    def fail(*args, **kwargs):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(attempt_service, "record_practice_answer", fail)
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)
    registry.select_answer(entry.id, user.id, 1)

    with caplog.at_level(logging.ERROR, logger="examhall.services.session_service"):
        index = registry.advance(entry.id, user.id, view=lambda e: e.session.current_index)

    assert index == 1
    assert dict(entry.session.answers) == {entry.session.questions[0].id: 1}
    assert "Failed to persist session data" in caplog.text
    assert db.execute(select(PracticeAnswer)).scalars().all() == []


def test_question_limit_rounds_up_to_whole_ticks(session_factory, user, archived_exam) -> None:
    registry = SessionRegistry(session_factory=session_factory, question_seconds=60, tick_seconds=7)
    entry = registry.start(user.id, SessionMode.ARCHIVE, archived_exam.id)

    assert entry.session.time_remaining == 9
    assert registry.to_ticks(14) == 2
    assert registry.to_ticks(0) == 1


def test_registry_clamps_tick_length(session_factory) -> None:
    registry = SessionRegistry(session_factory=session_factory, tick_seconds=0)
    assert registry.tick_seconds == 1
    assert registry.to_ticks(60) == 60


def test_ticker_never_runs_faster_than_one_second(registry) -> None:
    calls = []
    registry.tick_all = lambda: calls.append(1) or 0
    stop = threading.Event()

    thread = start_session_ticker(registry, interval=0, stop_event=stop)
    time.sleep(0.5)
    stop.set()
    thread.join(timeout=2)

    assert not thread.is_alive()
    assert calls == []
