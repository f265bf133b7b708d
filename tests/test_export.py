"""Tests for CSV export."""

from datetime import datetime, timezone

from src.complaints.application import complaints_to_csv, activity_to_csv
from src.complaints.domain import ActivityLogEntry, Complaint

CREATED = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def _complaint(**overrides):
    fields = dict(
        id="c-1",
        tenant_id="campus-north",
        title='Door "stuck"',
        description="Won't open, even with force",
        category="carpentry",
        priority="low",
        status="open",
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(overrides)
    return Complaint(**fields)


def test_complaint_csv_quotes_every_field():
    complaint = _complaint(location="Hall 3", reporter_name="Asha Rao", assignee_name="Technician A")
    lines = complaints_to_csv([complaint]).splitlines()

    assert lines[0] == (
        '"Title","Description","Category","Priority","Status","Location",'
        '"Created At","Reported By","Assigned To"'
    )
    assert lines[1] == (
        '"Door ""stuck""","Won\'t open, even with force","carpentry","low","open",'
        '"Hall 3","2024-03-01","Asha Rao","Technician A"'
    )


def test_complaint_csv_placeholders_for_missing_names():
    row = complaints_to_csv([_complaint()]).splitlines()[1]
    assert row.endswith('"","2024-03-01","Unknown","Unassigned"')


def test_empty_export_has_header_only():
    assert complaints_to_csv([]).count("\n") == 1


def test_activity_csv():
    entry = ActivityLogEntry(
        tenant_id="campus-north",
        complaint_id="c-1",
        action="Status updated",
        performed_by="tech-a",
        details="Status changed from open to in progress",
        created_at=CREATED,
        performer_name="Technician A",
    )
    orphan = ActivityLogEntry(
        tenant_id="campus-north", complaint_id="gone", action="Complaint created",
        performed_by=None, created_at=CREATED
    )
    lines = activity_to_csv([entry, orphan], {"c-1": "Door stuck"}).splitlines()

    assert lines[0] == '"Complaint","Action","Details","Performed By","Timestamp"'
    assert lines[1] == (
        '"Door stuck","Status updated","Status changed from open to in progress",'
        '"Technician A","2024-03-01T09:30:00+00:00"'
    )
    assert lines[2].startswith('"Unknown","Complaint created","","Unknown"')
