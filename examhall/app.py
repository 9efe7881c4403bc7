"""Main FastAPI application with modularized routes."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from examhall.config import SESSION_TICKER_ENABLED
from examhall.database import init_db
from examhall.logging_setup import setup_console_logging
from examhall.routes import archive, auth, dashboard, sessions, users
from examhall.services.cleanup_service import schedule_attempts_cleanup, start_session_ticker
from examhall.services.session_service import registry

setup_console_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="ExamHall API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database and start background workers."""
    init_db()
    schedule_attempts_cleanup()
    if SESSION_TICKER_ENABLED:
        start_session_ticker(registry)
    else:
        logger.warning("Session ticker disabled; timers will not count down")


@app.get("/health")
def health() -> dict[str, object]:
    """Liveness check."""
    return {"status": "ok", "activeSessions": len(registry)}


# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(dashboard.router)
app.include_router(archive.router)
app.include_router(sessions.router)
