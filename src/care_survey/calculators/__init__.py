"""Derived metrics computed from regional rollups."""

from .care_burden import (
    OVERLOAD_THRESHOLD,
    CareBurdenEstimator,
    CareBurdenStatus,
    alert_briefing,
    estimate_care_burden,
    estimate_from_rollup,
    severity_percentage,
    staff_per_user_ratio,
)

__all__ = [
    "OVERLOAD_THRESHOLD",
    "CareBurdenEstimator",
    "CareBurdenStatus",
    "alert_briefing",
    "estimate_care_burden",
    "estimate_from_rollup",
    "severity_percentage",
    "staff_per_user_ratio",
]
