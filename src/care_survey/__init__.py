"""
Elder-Care Survey Reconciliation
Monthly survey validation and regional rollups

Checks each institution's monthly staffing/user report for internal
consistency, rolls the month up by si/gun across Gyeongnam, and derives
the care-burden ratios used by the climate alert briefing.
"""

__version__ = "0.1.0"
__project__ = "Gyeongnam Elder-Care Survey Dashboard"

from .aggregation.regional import aggregate_month, institution_statuses
from .calculators.care_burden import CareBurdenEstimator, estimate_care_burden
from .directory import InstitutionDirectory, InstitutionInfo
from .months import latest_month, sort_month_labels
from .regions import GYEONGNAM_REGIONS, normalize_region
from .submission import Submission, submission_from_record
from .validators.consistency import validate_batch, validate_submission

__all__ = [
    "aggregate_month",
    "institution_statuses",
    "CareBurdenEstimator",
    "estimate_care_burden",
    "InstitutionDirectory",
    "InstitutionInfo",
    "latest_month",
    "sort_month_labels",
    "GYEONGNAM_REGIONS",
    "normalize_region",
    "Submission",
    "submission_from_record",
    "validate_batch",
    "validate_submission",
]
