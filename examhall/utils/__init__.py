"""Utility modules."""
from examhall.utils.time_utils import ensure_utc, format_countdown
from examhall.utils.validation import validate_id

__all__ = [
    "ensure_utc",
    "format_countdown",
    "validate_id",
]
