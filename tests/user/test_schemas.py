"""Tests for app/user/schemas.py - parsing and serialization helpers."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from app.user.exceptions import InvalidRoleError, InvalidStatusError
from app.user.models import UserRole, UserStatus
from app.user.schemas import _to_utc_iso, parse_role, parse_status


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("admin", UserRole.admin),
        (" SuperAdmin ", UserRole.superadmin),
        (UserRole.viewer, UserRole.viewer),
    ],
)
def test_parse_role(raw, expected):
    assert parse_role(raw) == expected


def test_parse_role_unknown_names_field():
    with pytest.raises(InvalidRoleError) as exc_info:
        parse_role("emperor", field="new_role")

    assert exc_info.value.field == "new_role"
    assert exc_info.value.kind == "validation"


def test_parse_status():
    assert parse_status("Suspended") == UserStatus.suspended
    with pytest.raises(InvalidStatusError):
        parse_status("deleted")


def test_to_utc_iso():
    """Test naive values are treated as UTC and offsets are converted."""
    naive = datetime(2024, 5, 1, 12, 30, 45, 123456)
    eat = datetime(2024, 5, 1, 15, 30, 45, tzinfo=timezone(timedelta(hours=3)))

    assert _to_utc_iso(naive) == "2024-05-01T12:30:45Z"
    assert _to_utc_iso(eat) == "2024-05-01T12:30:45Z"
    assert _to_utc_iso(datetime(2024, 5, 1, tzinfo=UTC)) == "2024-05-01T00:00:00Z"
    assert _to_utc_iso(None) is None
