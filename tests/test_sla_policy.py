"""Tests for policy resolution: environment defaults, YAML file, tenant settings."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.core import ConfigurationException, PermissionDeniedException
from src.sla.application import SLAService
from src.sla.application.services import round_half_up
from src.sla.domain import SLAPolicy, TenantSettings
from src.sla.infrastructure import SLAConfigManager

from conftest import TENANT


# ── Policy file ──────────────────────────────────────────────────────────

def test_missing_file_uses_defaults(tmp_path):
    manager = SLAConfigManager(SLAPolicy.from_hours(critical=4))
    policy = manager.load(tmp_path / "absent.yaml")
    assert policy.hours_for("critical") == 4
    assert policy.hours_for("low") == 120


def test_file_overlays_defaults(tmp_path):
    path = tmp_path / "sla.yaml"
    path.write_text("deadline_hours:\n  high: 12\n")
    manager = SLAConfigManager()
    manager.load(path)
    assert manager.get_policy().hours_for("high") == 12
    assert manager.get_policy().hours_for("medium") == 72


def test_invalid_file_rejected(tmp_path):
    path = tmp_path / "sla.yaml"
    path.write_text("deadline_hours:\n  high: 0\n")
    with pytest.raises(ConfigurationException):
        SLAConfigManager().load(path)


def test_reload_keeps_previous_policy_on_error(tmp_path):
    path = tmp_path / "sla.yaml"
    path.write_text("deadline_hours:\n  high: 12\n")
    manager = SLAConfigManager()
    manager.load(path)

    path.write_text("deadline_hours: [1, 2]\n")
    assert manager.reload() is False
    assert manager.get_policy().hours_for("high") == 12

    path.write_text("deadline_hours:\n  high: 6\n")
    assert manager.reload() is True
    assert manager.get_policy().hours_for("high") == 6


# ── Tenant settings ──────────────────────────────────────────────────────

def test_tenant_settings_override_defaults(world):
    world.tenant_settings.rows[TENANT] = TenantSettings(
        tenant_id=TENANT, sla_critical_hours=2, sla_high_hours=8, sla_medium_hours=48, sla_low_hours=96
    )
    policy = asyncio.run(world.sla_service.get_policy(TENANT))
    assert policy.hours_for("critical") == 2
    assert policy.hours_for("low") == 96


def test_get_settings_reports_default(world):
    settings, is_default = asyncio.run(world.sla_service.get_tenant_settings(world.ctx(world.admin)))
    assert is_default is True
    assert settings.sla_medium_hours == 72
    assert settings.categories == []


def test_update_settings_normalizes_categories(world):
    saved = asyncio.run(world.sla_service.update_tenant_settings(
        world.ctx(world.admin), 4, 12, 48, 96, [" Plumbing", "plumbing", "HVAC", ""]
    ))
    assert saved.categories == ["plumbing", "hvac"]
    assert saved.updated_at is not None

    settings, is_default = asyncio.run(world.sla_service.get_tenant_settings(world.ctx(world.admin)))
    assert is_default is False
    assert settings.sla_critical_hours == 4


def test_update_settings_requires_admin(world):
    with pytest.raises(PermissionDeniedException):
        asyncio.run(world.sla_service.update_tenant_settings(
            world.ctx(world.supervisor), 4, 12, 48, 96, []
        ))


# ── Compliance ───────────────────────────────────────────────────────────

def test_compliance_ignores_open_and_deleted(world):
    now = datetime(2024, 3, 10, tzinfo=timezone.utc)
    start = now - timedelta(hours=100)
    complaints = [
        world.seed_complaint(priority="high", status="open", created_at=start),
        world.seed_complaint(priority="high", status="in_progress", assigned_to="tech-a", created_at=start),
        world.seed_complaint(priority="low", status="in_progress", assigned_to="tech-a", created_at=start),
        world.seed_complaint(priority="high", status="resolved", assigned_to="tech-a", created_at=start),
        world.seed_complaint(priority="high", status="in_progress", is_deleted=True, created_at=start),
    ]
    summary = SLAService.summarize_compliance(complaints, SLAPolicy(), now)
    assert summary.evaluated_count == 3
    assert summary.compliant_count == 2
    assert summary.sla_compliance_percent == 67
    assert summary.avg_resolution_hours == 10


def test_compliance_rounds_halves_up(world):
    now = datetime(2024, 3, 10, tzinfo=timezone.utc)
    start = now - timedelta(hours=100)
    complaints = [world.seed_complaint(priority="high", status="resolved", assigned_to="tech-a", created_at=start)]
    complaints += [
        world.seed_complaint(priority="high", status="in_progress", assigned_to="tech-a", created_at=start)
        for _ in range(7)
    ]
    summary = SLAService.summarize_compliance(complaints, SLAPolicy(), now)
    assert summary.evaluated_count == 8
    assert summary.compliant_count == 1
    assert summary.sla_compliance_percent == 13


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(10.5) == 11
    assert round_half_up(0.49) == 0


def test_compliance_with_nothing_evaluated_is_full():
    summary = SLAService.summarize_compliance([], SLAPolicy())
    assert summary.sla_compliance_percent == 100
    assert summary.avg_resolution_hours == 0
