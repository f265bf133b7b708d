"""
Assignment Advisor
==================

Workload-balanced technician selection.

Active counts are a pure aggregation over a complaint snapshot and are
recomputed on every call. Counts can be stale by the time an assignment is
written; the cap check made right before the write is the only safeguard.
"""

from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from src.complaints.domain.entities import Complaint, Technician

DEFAULT_MAX_LOAD = 10


class AssignmentAdvisor:
    """
    Pure functions for ranking and validating technician assignments.
    """

    @staticmethod
    def tally_active_counts(
        complaints: Iterable[Complaint],
        exclude_complaint_id: Optional[str] = None
    ) -> Dict[str, int]:
        """
        Count active complaints per assignee.

        Only open/in-progress, non-deleted, assigned complaints count.

        Args:
            complaints: Snapshot of the tenant's complaints
            exclude_complaint_id: Complaint to leave out (the one being reassigned)

        Returns:
            Mapping technician id -> active count (absent means zero)
        """
        return dict(Counter(
            c.assigned_to
            for c in complaints
            if c.is_active
            and c.assigned_to is not None
            and (exclude_complaint_id is None or c.id != exclude_complaint_id)
        ))

    @staticmethod
    def rank(
        technicians: Iterable[Technician],
        complaints: Iterable[Complaint],
        exclude_complaint_id: Optional[str] = None
    ) -> List[Technician]:
        """
        Order technicians from least to most loaded.

        The sort is stable, so technicians with equal counts keep roster order.

        Returns:
            New Technician objects with active_count filled in
        """
        counts = AssignmentAdvisor.tally_active_counts(complaints, exclude_complaint_id)
        with_counts = [replace(t, active_count=counts.get(t.id, 0)) for t in technicians]
        return sorted(with_counts, key=lambda t: t.active_count)

    @staticmethod
    def can_assign(technician: Technician, max_load: int = DEFAULT_MAX_LOAD) -> bool:
        """A technician is assignable while below the caseload cap."""
        return technician.active_count < max_load

    @staticmethod
    def suggest(
        ranked: List[Technician],
        max_load: int = DEFAULT_MAX_LOAD
    ) -> Optional[Technician]:
        """First ranked technician, only if they are below the cap."""
        if not ranked:
            return None
        candidate = ranked[0]
        return candidate if AssignmentAdvisor.can_assign(candidate, max_load) else None
