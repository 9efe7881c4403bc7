"""API route modules."""
from examhall.routes import archive, auth, dashboard, sessions, users

__all__ = ["archive", "auth", "dashboard", "sessions", "users"]
