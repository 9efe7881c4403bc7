from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from examhall.services.exam_service import time_until_start
from examhall.utils import time_utils, validation


def test_ensure_utc_attaches_timezone_to_naive_values() -> None:
    naive = datetime(2025, 10, 11, 9, 30)
    assert time_utils.ensure_utc(naive).tzinfo is timezone.utc

    aware = datetime(2025, 10, 11, 9, 30, tzinfo=timezone(timedelta(hours=6)))
    assert time_utils.ensure_utc(aware) is aware


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "00:00"), (59, "00:59"), (60, "01:00"), (3599, "59:59"), (3600, "01:00:00"), (-5, "00:00")],
)
def test_format_countdown(seconds: int, expected: str) -> None:
    assert time_utils.format_countdown(seconds) == expected


def test_time_until_start() -> None:
    now = datetime(2025, 10, 11, 9, 0, tzinfo=timezone.utc)
    assert time_until_start(now + timedelta(hours=2, minutes=15, seconds=30), now) == (2, 15)
    assert time_until_start(now - timedelta(minutes=1), now) is None
    assert time_until_start(datetime(2025, 10, 11, 9, 45), now) == (0, 45)


def test_validate_id_accepts_and_trims() -> None:
    assert validation.validate_id("sessionId", "  abc_123-XYZ ") == "abc_123-XYZ"


@pytest.mark.parametrize("value", ["", "   ", "../etc", "a" * 65, None])
def test_validate_id_rejects_bad_values(value) -> None:
    with pytest.raises(HTTPException) as exc_info:
        validation.validate_id("sessionId", value)
    assert exc_info.value.status_code == 400
