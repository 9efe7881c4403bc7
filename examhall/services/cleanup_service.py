"""Background workers: session ticker and attempt cleanup."""
import logging
import threading
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from examhall.config import (
    ABANDONED_RETENTION_DAYS,
    ATTEMPTS_CLEANUP_INTERVAL_SECONDS,
)
from examhall.database import SessionLocal
from examhall.models.db.attempt import AttemptStatus, ExamAttempt
from examhall.services.auth_service import cleanup_expired_sessions
from examhall.services.session_service import SessionRegistry

logger = logging.getLogger(__name__)


def cleanup_abandoned_attempts(session_factory=SessionLocal) -> int:
    """Remove old abandoned attempts from database."""
    if ABANDONED_RETENTION_DAYS <= 0:
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(days=ABANDONED_RETENTION_DAYS)

    db = session_factory()
    try:
        # Delete abandoned attempts older than retention period
        result = db.execute(
            delete(ExamAttempt).where(
                ExamAttempt.status == AttemptStatus.ABANDONED.value,
                ExamAttempt.started_at < cutoff,
            )
        )
        db.commit()
        deleted = result.rowcount
        if deleted > 0:
            logger.info(f"Cleaned up {deleted} abandoned attempts")

        expired = cleanup_expired_sessions(db)
        if expired > 0:
            logger.info(f"Cleaned up {expired} expired login sessions")
        return deleted
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to cleanup abandoned attempts: {e}")
        return 0
    finally:
        db.close()


def schedule_attempts_cleanup() -> threading.Thread:
    """Schedule periodic cleanup of old attempts."""

    def _worker() -> None:
        # Initial delay before first cleanup
        time.sleep(60)
        while True:
            cleanup_abandoned_attempts()
            time.sleep(ATTEMPTS_CLEANUP_INTERVAL_SECONDS)

    thread = threading.Thread(
        target=_worker,
        name="attempts_cleanup",
        daemon=True,
    )
    thread.start()
    return thread


def start_session_ticker(
    registry: SessionRegistry,
    interval: float | None = None,
    stop_event: threading.Event | None = None,
) -> threading.Thread:
    """Tick every running session once per interval until stop_event is set.

    The interval defaults to the registry tick length and is never below one second.
    """
    interval = max(1.0, float(interval if interval is not None else registry.tick_seconds))
    stop_event = stop_event or threading.Event()

    def _worker() -> None:
        next_tick = time.monotonic() + interval
        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            next_tick += interval
            try:
                registry.tick_all()
            except Exception:
                logger.exception("Session tick failed")

    thread = threading.Thread(
        target=_worker,
        name="session_ticker",
        daemon=True,
    )
    thread.start()
    logger.info("Session ticker started (interval=%ss)", interval)
    return thread
