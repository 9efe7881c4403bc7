"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float_env(name: str, default: float) -> float:
    """Parse float from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_bool_env(name: str, default: bool) -> bool:
    """Parse boolean flag from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'examhall.db'}"
)
if DATABASE_URL.startswith("sqlite:///"):
    DB_DIR.mkdir(parents=True, exist_ok=True)

# Authentication
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = _parse_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)
SESSION_EXTEND_MINUTES = _parse_int_env("SESSION_EXTEND_MINUTES", 60)

# Exam sessions
QUESTION_TIME_LIMIT_SECONDS = _parse_int_env("QUESTION_TIME_LIMIT_SECONDS", 60)
TICK_INTERVAL_SECONDS = _parse_int_env("TICK_INTERVAL_SECONDS", 1)
ARCHIVE_PASS_RATIO = _parse_float_env("ARCHIVE_PASS_RATIO", 0.5)
SESSION_TICKER_ENABLED = _parse_bool_env("SESSION_TICKER_ENABLED", True)
COMPLETED_SESSION_TTL_MINUTES = _parse_int_env("COMPLETED_SESSION_TTL_MINUTES", 120)

# Cleanup
ABANDONED_RETENTION_DAYS = _parse_int_env("ABANDONED_RETENTION_DAYS", 90)
ATTEMPTS_CLEANUP_INTERVAL_SECONDS = _parse_int_env(
    "ATTEMPTS_CLEANUP_INTERVAL_SECONDS", 24 * 60 * 60
)
