"""
CSV export of complaints and activity.

Every field is quoted, header first, one record per line.
"""

import csv
import io
from datetime import datetime
from typing import Dict, Iterable, Optional

from src.complaints.domain import Complaint, ActivityLogEntry

COMPLAINT_HEADER = [
    "Title", "Description", "Category", "Priority", "Status",
    "Location", "Created At", "Reported By", "Assigned To",
]
ACTIVITY_HEADER = ["Complaint", "Action", "Details", "Performed By", "Timestamp"]


def _writer(buffer: io.StringIO):
    return csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")


def _iso_date(value: Optional[datetime]) -> str:
    return value.date().isoformat() if value else ""


def complaints_to_csv(complaints: Iterable[Complaint]) -> str:
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(COMPLAINT_HEADER)
    for c in complaints:
        writer.writerow([
            c.title,
            c.description,
            c.category,
            c.priority,
            c.status,
            c.location or "",
            _iso_date(c.created_at),
            c.reporter_name or "Unknown",
            c.assignee_name or "Unassigned",
        ])
    return buffer.getvalue()


def activity_to_csv(entries: Iterable[ActivityLogEntry], complaint_titles: Dict[str, str]) -> str:
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(ACTIVITY_HEADER)
    for e in entries:
        writer.writerow([
            complaint_titles.get(e.complaint_id, "Unknown"),
            e.action,
            e.details or "",
            e.performer_name or "Unknown",
            e.created_at.isoformat(),
        ])
    return buffer.getvalue()
