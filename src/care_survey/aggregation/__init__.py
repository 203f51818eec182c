"""Monthly rollups by region and allocation cross-checks."""

from .allocation import SORT_KEYS, AllocationMismatchRow, allocation_mismatches
from .regional import (
    AggregationResult,
    InstitutionStatus,
    MemberSummary,
    ProvinceTotals,
    RegionRollup,
    aggregate_month,
    institution_statuses,
)
from ..submission import latest_by_code

__all__ = [
    "SORT_KEYS",
    "AllocationMismatchRow",
    "allocation_mismatches",
    "AggregationResult",
    "InstitutionStatus",
    "MemberSummary",
    "ProvinceTotals",
    "RegionRollup",
    "aggregate_month",
    "institution_statuses",
    "latest_by_code",
]
