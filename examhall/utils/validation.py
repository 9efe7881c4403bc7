"""Validation utilities."""
import re

from fastapi import HTTPException

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_id(name: str, value: str) -> str:
    """Validate opaque ID string (alphanumerics, dash and underscore only)."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if not _ID_PATTERN.match(cleaned):
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return cleaned
