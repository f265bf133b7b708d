"""
SLA Module
==========

Bounded Context for complaint resolution deadlines.

Responsibilities:
- Resolve the per-priority deadline table for a tenant
- Evaluate complaints as overdue or with time remaining
- Summarize SLA compliance for dashboards
- Hot-reload the default policy file via watchdog
- Provide tenant policy and per-complaint SLA endpoints
"""

__version__ = "1.0.0"
