"""
Complaints Module
=================

Bounded Context for campus maintenance complaints.

Responsibilities:
- Complaint intake, listing and visibility per role
- Workload-balanced technician assignment with a caseload cap
- Forward-only status transitions
- Soft delete and restore
- Activity log, notifications, analytics and CSV export
"""

__version__ = "1.0.0"
