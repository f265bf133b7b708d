"""Tests for the complaint lifecycle service."""

import asyncio

import pytest

from src.complaints.application import ComplaintFilters
from src.core import (
    AssignmentCapacityException,
    InvalidStatusTransitionException,
    PermissionDeniedException,
    ResourceNotFoundException,
    SideEffectException,
    ValidationException,
)
from src.sla.domain import TenantSettings

from conftest import TENANT, OTHER_TENANT


def run(coro):
    return asyncio.run(coro)


# ── Intake ───────────────────────────────────────────────────────────────

def test_student_files_complaint(world):
    result = run(world.service.create_complaint(
        world.ctx(world.student), "  Broken fan ", "Fan in room 12 does not spin", "Electrical", "high", "Block A"
    ))
    complaint = result.complaint

    assert complaint.id in world.complaints.rows
    assert complaint.title == "Broken fan"
    assert complaint.category == "electrical"
    assert complaint.status == "open"
    assert complaint.created_by == "student-1"

    [entry] = world.activity.entries
    assert entry.action == "Complaint created"
    assert entry.details == "Priority: high, Category: electrical"

    [note] = world.notifications.rows
    assert note.user_id == "admin-1"
    assert note.title == "New Complaint"
    assert note.type == "created"
    assert result.effects.succeeded


def test_only_students_file(world):
    with pytest.raises(PermissionDeniedException):
        run(world.service.create_complaint(world.ctx(world.admin), "t", "d", "plumbing"))


def test_blank_title_rejected_before_write(world):
    with pytest.raises(ValidationException):
        run(world.service.create_complaint(world.ctx(world.student), "   ", "d", "plumbing"))
    assert world.complaints.rows == {}


def test_unknown_category_rejected_when_tenant_has_categories(world):
    world.tenant_settings.rows[TENANT] = TenantSettings(
        tenant_id=TENANT, sla_critical_hours=24, sla_high_hours=24, sla_medium_hours=72, sla_low_hours=120,
        categories=["plumbing"]
    )
    with pytest.raises(ValidationException):
        run(world.service.create_complaint(world.ctx(world.student), "t", "d", "carpentry"))
    result = run(world.service.create_complaint(world.ctx(world.student), "t", "d", "Plumbing"))
    assert result.complaint.category == "plumbing"


def test_failed_side_effects_do_not_undo_intake(world):
    world.activity.fail = True
    world.notifications.fail = True
    result = run(world.service.create_complaint(world.ctx(world.student), "t", "d", "plumbing"))

    assert result.complaint.id in world.complaints.rows
    assert result.effects.failed_steps == ["log_activity", "notify_admin:admin-1"]


def test_primary_failure_writes_nothing_else(world):
    world.complaints.fail_writes = True
    with pytest.raises(Exception):
        run(world.service.create_complaint(world.ctx(world.student), "t", "d", "plumbing"))
    assert world.activity.entries == []
    assert world.notifications.rows == []


def test_transactional_mode_surfaces_side_effect_failure(transactional_world):
    world = transactional_world
    world.activity.fail = True
    with pytest.raises(SideEffectException):
        run(world.service.create_complaint(world.ctx(world.student), "t", "d", "plumbing"))


# ── Visibility ───────────────────────────────────────────────────────────

def test_listing_respects_roles(world):
    mine = world.seed_complaint(created_by="student-1", assigned_to="tech-a", status="in_progress")
    theirs = world.seed_complaint(created_by="student-2")
    world.seed_complaint(tenant_id=OTHER_TENANT)

    student_view = run(world.service.list_complaints(world.ctx(world.student)))
    tech_view = run(world.service.list_complaints(world.ctx(world.tech_a)))
    admin_view = run(world.service.list_complaints(world.ctx(world.admin)))
    supervisor_view = run(world.service.list_complaints(world.ctx(world.supervisor)))

    assert [c.id for c in student_view] == [mine.id]
    assert [c.id for c in tech_view] == [mine.id]
    assert {c.id for c in admin_view} == {mine.id, theirs.id}
    assert {c.id for c in supervisor_view} == {mine.id, theirs.id}


def test_listing_resolves_display_names(world):
    world.seed_complaint(created_by="student-2", assigned_to="tech-a", status="in_progress")
    [complaint] = run(world.service.list_complaints(world.ctx(world.admin)))
    assert complaint.reporter_name == "ben@campus.edu"
    assert complaint.assignee_name == "Technician A"


def test_other_students_complaint_is_not_found(world):
    theirs = world.seed_complaint(created_by="student-2")
    with pytest.raises(ResourceNotFoundException):
        run(world.service.get_complaint(world.ctx(world.student), theirs.id))


def test_other_tenant_complaint_is_not_found(world):
    foreign = world.seed_complaint(tenant_id=OTHER_TENANT)
    with pytest.raises(ResourceNotFoundException):
        run(world.service.get_complaint(world.ctx(world.admin), foreign.id))


def test_only_admins_list_deleted(world):
    world.seed_complaint(is_deleted=True)
    with pytest.raises(PermissionDeniedException):
        run(world.service.list_complaints(world.ctx(world.supervisor), ComplaintFilters(include_deleted=True)))
    assert len(run(world.service.list_complaints(world.ctx(world.admin), ComplaintFilters(include_deleted=True)))) == 1


def test_search_matches_title(world):
    world.seed_complaint(title="Broken window")
    world.seed_complaint(title="Leaking tap")
    found = run(world.service.list_complaints(world.ctx(world.admin), ComplaintFilters(search="window")))
    assert [c.title for c in found] == ["Broken window"]


# ── Workload & assignment ────────────────────────────────────────────────

def test_workload_ranks_and_suggests(world):
    for _ in range(3):
        world.seed_complaint(status="in_progress", assigned_to="tech-a")
    for _ in range(7):
        world.seed_complaint(status="in_progress", assigned_to="tech-b")

    view = run(world.service.get_workload(world.ctx(world.admin)))
    assert [(t.id, t.active_count) for t in view.technicians] == [("tech-a", 3), ("tech-b", 7)]
    assert view.suggested.id == "tech-a"
    assert view.max_load == 10


def test_students_cannot_see_workload(world):
    with pytest.raises(PermissionDeniedException):
        run(world.service.get_workload(world.ctx(world.student)))


def test_assign_moves_to_in_progress_and_notifies(world):
    complaint = world.seed_complaint()
    result = run(world.service.assign_complaint(world.ctx(world.admin), complaint.id, "tech-b"))

    stored = world.complaints.rows[complaint.id]
    assert stored.assigned_to == "tech-b"
    assert stored.status == "in_progress"
    assert result.complaint.assignee_name == "Technician B"

    [entry] = world.activity.entries
    assert entry.action == "Assigned to technician"
    assert entry.details == "Assigned to Technician B"
    assert {(n.user_id, n.title) for n in world.notifications.rows} == {
        ("tech-b", "New Assignment"),
        ("student-1", "Complaint Assigned"),
    }


def test_assign_at_cap_rejected_without_mutation(world):
    for _ in range(10):
        world.seed_complaint(status="in_progress", assigned_to="tech-a")
    complaint = world.seed_complaint()

    with pytest.raises(AssignmentCapacityException) as exc_info:
        run(world.service.assign_complaint(world.ctx(world.admin), complaint.id, "tech-a"))

    assert exc_info.value.active_count == 10
    stored = world.complaints.rows[complaint.id]
    assert stored.assigned_to is None
    assert stored.status == "open"
    assert world.activity.entries == []
    assert world.notifications.rows == []


def test_reassigning_own_complaint_does_not_count_it(world):
    for _ in range(9):
        world.seed_complaint(status="in_progress", assigned_to="tech-a")
    complaint = world.seed_complaint(status="in_progress", assigned_to="tech-a")

    run(world.service.assign_complaint(world.ctx(world.admin), complaint.id, "tech-a"))
    assert world.complaints.rows[complaint.id].assigned_to == "tech-a"


def test_assign_requires_admin(world):
    complaint = world.seed_complaint()
    with pytest.raises(PermissionDeniedException):
        run(world.service.assign_complaint(world.ctx(world.supervisor), complaint.id, "tech-a"))


def test_assign_to_non_technician_rejected(world):
    complaint = world.seed_complaint()
    with pytest.raises(ValidationException):
        run(world.service.assign_complaint(world.ctx(world.admin), complaint.id, "student-2"))


def test_assign_resolved_rejected(world):
    complaint = world.seed_complaint(status="resolved", assigned_to="tech-a")
    with pytest.raises(InvalidStatusTransitionException):
        run(world.service.assign_complaint(world.ctx(world.admin), complaint.id, "tech-b"))


def test_assign_deleted_rejected(world):
    complaint = world.seed_complaint(is_deleted=True)
    with pytest.raises(ValidationException):
        run(world.service.assign_complaint(world.ctx(world.admin), complaint.id, "tech-a"))


# ── Status ───────────────────────────────────────────────────────────────

def test_technician_resolves_assigned_complaint(world):
    complaint = world.seed_complaint(status="in_progress", assigned_to="tech-a")
    result = run(world.service.update_status(world.ctx(world.tech_a), complaint.id, "resolved"))

    assert result.complaint.status == "resolved"
    assert result.complaint.resolved_at is not None
    [entry] = world.activity.entries
    assert entry.details == "Status changed from in progress to resolved"
    [note] = world.notifications.rows
    assert (note.user_id, note.title, note.type) == ("student-1", "Complaint Resolved", "resolved")


def test_open_to_resolved_allowed(world):
    complaint = world.seed_complaint(status="open", assigned_to="tech-a")
    result = run(world.service.update_status(world.ctx(world.tech_a), complaint.id, "resolved"))
    assert result.complaint.status == "resolved"


@pytest.mark.parametrize("current,requested", [
    ("in_progress", "open"),
    ("in_progress", "in_progress"),
    ("resolved", "in_progress"),
])
def test_backward_or_repeated_moves_rejected(world, current, requested):
    complaint = world.seed_complaint(status=current, assigned_to="tech-a")
    with pytest.raises(InvalidStatusTransitionException):
        run(world.service.update_status(world.ctx(world.tech_a), complaint.id, requested))
    assert world.complaints.rows[complaint.id].status == current
    assert world.activity.entries == []


def test_unassigned_technician_cannot_update(world):
    complaint = world.seed_complaint(status="in_progress", assigned_to="tech-a")
    with pytest.raises(PermissionDeniedException):
        run(world.service.update_status(world.ctx(world.tech_b), complaint.id, "resolved"))


# ── Soft delete ──────────────────────────────────────────────────────────

def test_soft_delete_and_restore_affect_workload(world):
    complaint = world.seed_complaint(status="in_progress", assigned_to="tech-a")

    deleted = run(world.service.delete_complaint(world.ctx(world.admin), complaint.id)).complaint
    assert deleted.is_deleted and deleted.deleted_at is not None
    view = run(world.service.get_workload(world.ctx(world.admin)))
    assert {t.id: t.active_count for t in view.technicians}["tech-a"] == 0
    assert run(world.service.list_complaints(world.ctx(world.admin))) == []

    restored = run(world.service.restore_complaint(world.ctx(world.admin), complaint.id)).complaint
    assert not restored.is_deleted and restored.deleted_at is None
    view = run(world.service.get_workload(world.ctx(world.admin)))
    assert {t.id: t.active_count for t in view.technicians}["tech-a"] == 1

    assert [e.action for e in world.activity.entries] == ["Complaint deleted", "Complaint restored"]


def test_double_delete_rejected(world):
    complaint = world.seed_complaint(is_deleted=True)
    with pytest.raises(ValidationException):
        run(world.service.delete_complaint(world.ctx(world.admin), complaint.id))


def test_restore_live_complaint_rejected(world):
    complaint = world.seed_complaint()
    with pytest.raises(ValidationException):
        run(world.service.restore_complaint(world.ctx(world.admin), complaint.id))


def test_deleted_complaint_hidden_from_reporter(world):
    complaint = world.seed_complaint(is_deleted=True)
    with pytest.raises(ResourceNotFoundException):
        run(world.service.get_complaint(world.ctx(world.student), complaint.id))


# ── Activity ─────────────────────────────────────────────────────────────

def test_activity_oldest_first_with_performer_names(world):
    complaint = world.seed_complaint()
    run(world.service.assign_complaint(world.ctx(world.admin), complaint.id, "tech-a"))
    run(world.service.update_status(world.ctx(world.tech_a), complaint.id, "resolved"))

    entries = run(world.service.get_activity(world.ctx(world.student), complaint.id))
    assert [e.action for e in entries] == ["Assigned to technician", "Status updated"]
    assert [e.performer_name for e in entries] == ["Dean Admin", "Technician A"]


def test_tenant_activity_requires_oversight_role(world):
    with pytest.raises(PermissionDeniedException):
        run(world.service.get_tenant_activity(world.ctx(world.tech_a)))
