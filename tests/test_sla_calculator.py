"""Tests for deadline evaluation and remaining-time labels."""

from datetime import datetime, timedelta, timezone

import pytest

from src.sla.domain import SLACalculator, SLAPolicy

T = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
DEFAULT = SLAPolicy()


# ── Overdue ──────────────────────────────────────────────────────────────

def test_high_priority_overdue_after_25_hours():
    status = SLACalculator.evaluate(T, "high", "open", DEFAULT, now=T + timedelta(hours=25))
    assert status.overdue is True
    assert status.label == "Overdue"
    assert status.remaining is None
    assert status.deadline == T + timedelta(hours=24)


def test_exactly_at_deadline_is_overdue():
    status = SLACalculator.evaluate(T, "critical", "in_progress", DEFAULT, now=T + timedelta(hours=24))
    assert status.overdue is True


@pytest.mark.parametrize("priority,hours", [("critical", 24), ("high", 24), ("medium", 72), ("low", 120)])
def test_one_minute_before_deadline_is_not_overdue(priority, hours):
    now = T + timedelta(hours=hours) - timedelta(minutes=1)
    status = SLACalculator.evaluate(T, priority, "open", DEFAULT, now=now)
    assert status.overdue is False
    assert status.label == "0h 1m left"


def test_resolved_is_never_overdue():
    status = SLACalculator.evaluate(T, "critical", "resolved", DEFAULT, now=T + timedelta(days=30))
    assert status.overdue is False
    assert status.label == "Resolved"
    assert status.remaining is None


# ── Labels ───────────────────────────────────────────────────────────────

def test_low_priority_after_30_hours_shows_days():
    status = SLACalculator.evaluate(T, "low", "open", DEFAULT, now=T + timedelta(hours=30))
    assert status.overdue is False
    assert status.label == "3d 18h left"
    assert status.remaining_seconds == 90 * 3600


def test_under_a_day_shows_hours_and_minutes():
    assert SLACalculator.format_remaining(timedelta(hours=5, minutes=59, seconds=59)) == "5h 59m left"


def test_exactly_24_hours_shows_days():
    assert SLACalculator.format_remaining(timedelta(hours=24)) == "1d 0h left"


def test_sub_minute_remainder_floors_to_zero():
    assert SLACalculator.format_remaining(timedelta(seconds=59)) == "0h 0m left"


# ── Policy ───────────────────────────────────────────────────────────────

def test_unknown_priority_uses_medium_deadline():
    assert DEFAULT.hours_for("urgent") == 72


def test_naive_created_at_treated_as_utc():
    naive = T.replace(tzinfo=None)
    status = SLACalculator.evaluate(naive, "high", "open", DEFAULT, now=T + timedelta(hours=1))
    assert status.label == "23h 0m left"


def test_policy_rejects_zero_hours():
    with pytest.raises(ValueError):
        SLAPolicy(deadline_hours={"high": 0})


def test_overlay_ignores_none():
    policy = DEFAULT.overlay({"high": 8, "low": None})
    assert policy.hours_for("high") == 8
    assert policy.hours_for("low") == 120


def test_status_to_dict():
    status = SLACalculator.evaluate(T, "low", "open", DEFAULT, now=T + timedelta(hours=30))
    data = status.to_dict()
    assert data["overdue"] is False
    assert data["label"] == "3d 18h left"
    assert data["deadline"] == (T + timedelta(hours=120)).isoformat()
