"""Pydantic models."""
from examhall.models.auth import (
    MessageResponse,
    ProfileUpdateRequest,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from examhall.models.sessions import (
    AnswerSelect,
    GoToQuestion,
    ReviewEntry,
    SessionCreate,
    SessionQuestion,
    SessionResultResponse,
    SessionStateResponse,
)

__all__ = [
    "AnswerSelect",
    "GoToQuestion",
    "MessageResponse",
    "ProfileUpdateRequest",
    "ReviewEntry",
    "SessionCreate",
    "SessionQuestion",
    "SessionResultResponse",
    "SessionStateResponse",
    "TokenResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
]
