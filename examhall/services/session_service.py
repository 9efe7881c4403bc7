"""
In-memory registry of running exam sessions.

Every stimulus (user action or timer tick) goes through the registry lock,
so each ExamSession sees exactly one event at a time. Persistence runs after
the lock is released and is best effort: a failed write is logged and never
changes the session state or its score.
"""
import logging
import math
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession, sessionmaker

from examhall.config import (
    ARCHIVE_PASS_RATIO,
    COMPLETED_SESSION_TTL_MINUTES,
    QUESTION_TIME_LIMIT_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from examhall.database import SessionLocal
from examhall.exam_session import (
    AnswerRecord,
    ExamSession,
    ExamSessionError,
    InvalidTransition,
    QuestionsUnavailable,
    SessionConfig,
    SessionMode,
)
from examhall.services import archive_service, attempt_service, exam_service

logger = logging.getLogger(__name__)

PersistTask = Callable[[DBSession], object]
View = Callable[["ActiveSession"], Any]


@dataclass
class ActiveSession:
    """A running ExamSession plus what the host needs to persist it."""

    id: str
    user_id: int
    mode: SessionMode
    exam_id: int
    exam_title: str
    session: ExamSession
    attempt_id: int | None = None
    tick_seconds: int = 1
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None


def _http_error(exc: ExamSessionError) -> HTTPException:
    if isinstance(exc, QuestionsUnavailable):
        return HTTPException(status_code=404, detail="Exam not found")
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


class SessionRegistry:
    """Owns active sessions and serializes the events delivered to them."""

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        question_seconds: int = QUESTION_TIME_LIMIT_SECONDS,
        tick_seconds: int = TICK_INTERVAL_SECONDS,
        pass_ratio: float = ARCHIVE_PASS_RATIO,
    ) -> None:
        self._session_factory = session_factory
        self._tick_seconds = max(1, tick_seconds)
        self._question_ticks = self.to_ticks(question_seconds)
        self._pass_ratio = pass_ratio
        self._sessions: dict[str, ActiveSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def tick_seconds(self) -> int:
        return self._tick_seconds

    def to_ticks(self, seconds: int) -> int:
        """Convert a duration to ticks, rounding up so limits are never shortened."""
        return max(1, math.ceil(seconds / self._tick_seconds))

    # ---- lifecycle ----

    def start(
        self, user_id: int, mode: SessionMode, exam_id: int, view: View | None = None
    ) -> Any:
        """Load questions for an exam and open a new session."""
        db = self._session_factory()
        try:
            if mode is SessionMode.LIVE:
                exam, questions = exam_service.load_live_questions(db, exam_id)
                title = exam.title
                config = SessionConfig.live(
                    duration_seconds=self.to_ticks(exam.duration_minutes * 60),
                    total_marks=exam.total_marks or None,
                    passing_marks=exam.passing_marks,
                )
            else:
                archived, questions = archive_service.load_archive_questions(db, exam_id)
                title = archived.exam_title
                config = SessionConfig.archive(
                    question_seconds=self._question_ticks,
                    pass_ratio=self._pass_ratio,
                )
        finally:
            db.close()

        session = ExamSession(config)
        try:
            session.load(questions)
        except ExamSessionError as exc:
            logger.warning("Exam %s (%s) has no questions", exam_id, mode.value)
            raise _http_error(exc) from exc

        entry = ActiveSession(
            id=uuid.uuid4().hex,
            user_id=user_id,
            mode=mode,
            exam_id=exam_id,
            exam_title=title,
            session=session,
            tick_seconds=self._tick_seconds,
        )

        if mode is SessionMode.LIVE:
            attempt = self._persist(
                lambda db: attempt_service.start_attempt(
                    db,
                    exam_id=exam_id,
                    user_id=user_id,
                    total_marks=config.total_marks
                    or sum(question.marks for question in questions),
                    question_count=session.question_count,
                )
            )
            if attempt is not None:
                entry.attempt_id = attempt.id

        logger.info(
            "Session %s started: user=%s mode=%s exam=%s questions=%d",
            entry.id, user_id, mode.value, exam_id, session.question_count,
        )
        with self._lock:
            self._sessions[entry.id] = entry
            return self._render(entry, view)

    def get(self, session_id: str, user_id: int, view: View | None = None) -> Any:
        """Look up a session; view, if given, renders it under the lock."""
        with self._lock:
            entry = self._lookup(session_id, user_id)
            return self._render(entry, view)

    def discard(self, session_id: str, user_id: int) -> None:
        """Drop a session; an unfinished live attempt is marked abandoned."""
        with self._lock:
            entry = self._lookup(session_id, user_id)
            del self._sessions[session_id]

        if entry.attempt_id is not None and not entry.session.is_completed:
            self._persist(lambda db: attempt_service.abandon_attempt(db, entry.attempt_id))
        logger.info("Session %s discarded", session_id)

    # ---- user actions ----

    def select_answer(
        self, session_id: str, user_id: int, option: int, view: View | None = None
    ) -> Any:
        return self._apply(session_id, user_id, lambda s: s.select_answer(option), view)

    def advance(self, session_id: str, user_id: int, view: View | None = None) -> Any:
        return self._apply(session_id, user_id, lambda s: s.advance(), view)

    def previous(self, session_id: str, user_id: int, view: View | None = None) -> Any:
        return self._apply(session_id, user_id, lambda s: s.previous(), view)

    def go_to(
        self, session_id: str, user_id: int, index: int, view: View | None = None
    ) -> Any:
        return self._apply(session_id, user_id, lambda s: s.go_to(index), view)

    def submit(self, session_id: str, user_id: int, view: View | None = None) -> Any:
        return self._apply(session_id, user_id, lambda s: s.submit(), view)

    # ---- timer ----

    def tick_all(self, now: datetime | None = None) -> int:
        """Deliver one tick to every running session. Returns how many ticked."""
        tasks: list[PersistTask] = []
        ticked = 0
        with self._lock:
            for entry in list(self._sessions.values()):
                if entry.session.is_completed:
                    continue
                record = entry.session.tick()
                ticked += 1
                tasks.extend(self._after_transition(entry, record, was_completed=False))
            self._prune_completed(now or datetime.now(timezone.utc))

        for task in tasks:
            self._persist(task)
        return ticked

    # ---- internals ----

    def _lookup(self, session_id: str, user_id: int) -> ActiveSession:
        entry = self._sessions.get(session_id)
        if entry is None or entry.user_id != user_id:
            raise HTTPException(status_code=404, detail="Session not found")
        return entry

    def _apply(
        self,
        session_id: str,
        user_id: int,
        action: Callable[[ExamSession], AnswerRecord | None],
        view: View | None = None,
    ) -> Any:
        with self._lock:
            entry = self._lookup(session_id, user_id)
            was_completed = entry.session.is_completed
            try:
                record = action(entry.session)
            except ExamSessionError as exc:
                raise _http_error(exc) from exc
            tasks = self._after_transition(entry, record, was_completed)
            rendered = self._render(entry, view)

        for task in tasks:
            self._persist(task)
        return rendered

    def _render(self, entry: ActiveSession, view: View | None) -> Any:
        if view is None:
            return entry
        try:
            return view(entry)
        except ExamSessionError as exc:
            raise _http_error(exc) from exc

    def _after_transition(
        self,
        entry: ActiveSession,
        record: AnswerRecord | None,
        was_completed: bool,
    ) -> list[PersistTask]:
        """Collect persistence work for what the last event changed."""
        tasks: list[PersistTask] = []

        if entry.mode is SessionMode.ARCHIVE and record is not None:
            spent = record.time_spent * self._tick_seconds
            tasks.append(
                lambda db: attempt_service.record_practice_answer(
                    db, entry.user_id, entry.exam_id, record, spent
                )
            )

        if entry.session.is_completed and not was_completed:
            entry.completed_at = datetime.now(timezone.utc)
            result = entry.session.result()
            logger.info(
                "Session %s completed: score=%d/%d answered=%d",
                entry.id, result.score, result.question_count, result.answered_count,
            )
            if entry.attempt_id is not None:
                attempt_id = entry.attempt_id
                tasks.append(lambda db: attempt_service.finish_attempt(db, attempt_id, result))

        return tasks

    def _prune_completed(self, now: datetime) -> None:
        cutoff = now - timedelta(minutes=COMPLETED_SESSION_TTL_MINUTES)
        expired = [
            session_id
            for session_id, entry in self._sessions.items()
            if entry.completed_at is not None and entry.completed_at < cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.debug("Pruned %d completed sessions", len(expired))

    def _persist(self, task: PersistTask) -> object | None:
        db = self._session_factory()
        try:
            return task(db)
        except (SQLAlchemyError, HTTPException):
            db.rollback()
            logger.exception("Failed to persist session data")
            return None
        finally:
            db.close()


registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    """Dependency to get the process-wide session registry."""
    return registry
