"""
Care-Burden Estimator

Turns a region's staff and user counts into the care-burden ratio used
by the climate/disaster alert briefing: served users per staff member
(social workers plus care providers). Above 10 users per staff member
the region is flagged as overloaded.

Every value is recomputed from its inputs on each call; nothing is
cached between rollups.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from ..aggregation.regional import RegionRollup
from ..directory import InstitutionDirectory
from ..utils import parse_count, round_half_up

logger = logging.getLogger(__name__)

# Users per staff member above which a region is overloaded
OVERLOAD_THRESHOLD = 10

# Ratio span mapped onto the 0-100% severity gauge (10 -> 0%, 20 -> 100%)
SEVERITY_SPAN = 10


@dataclass(frozen=True)
class CareBurdenStatus:
    region: str
    estimated_solitary: int
    social_workers: int
    care_providers: int
    users_served: int
    staff_per_user: float
    is_overloaded: bool
    severity_pct: float
    institution_count: int = 0

    @property
    def total_staff(self) -> int:
        return self.social_workers + self.care_providers

    def to_dict(self) -> dict:
        return {
            'region': self.region,
            'estimated_solitary': self.estimated_solitary,
            'social_workers': self.social_workers,
            'care_providers': self.care_providers,
            'total_staff': self.total_staff,
            'users_served': self.users_served,
            'staff_per_user': self.staff_per_user,
            'is_overloaded': self.is_overloaded,
            'severity_pct': self.severity_pct,
            'institution_count': self.institution_count,
        }


def staff_per_user_ratio(users_served: int, total_staff: int) -> float:
    """
    Users per staff member, rounded to one decimal.

    Returns 0.0 when either side is zero; a region with no staff or no
    users has no defined ratio and must not raise.

    Example:
        >>> staff_per_user_ratio(250, 20)
        12.5
    """
    if total_staff <= 0 or users_served <= 0:
        return 0.0
    return round_half_up(users_served / total_staff, 1)


def severity_percentage(ratio: float) -> float:
    """
    Gauge fill for an overloaded region.

    clamp(((ratio - 10) / 10) * 100, 0, 100) when overloaded, else 0.
    """
    if ratio <= OVERLOAD_THRESHOLD:
        return 0.0
    pct = (ratio - OVERLOAD_THRESHOLD) / SEVERITY_SPAN * 100
    return float(min(max(pct, 0.0), 100.0))


def estimate_care_burden(
    region: str,
    social_workers: int,
    care_providers: int,
    users_served: int,
    estimated_solitary: int = 0,
    institution_count: int = 0,
) -> CareBurdenStatus:
    """
    Compute the care-burden status of one region.

    Args:
        region: Region name
        social_workers: Social workers in the region
        care_providers: Care providers in the region
        users_served: Users served in the region
        estimated_solitary: External estimate of solitary elders
        institution_count: Number of institutions behind the counts

    Returns:
        CareBurdenStatus
    """
    social_workers = parse_count(social_workers)
    care_providers = parse_count(care_providers)
    users_served = parse_count(users_served)

    ratio = staff_per_user_ratio(users_served, social_workers + care_providers)

    return CareBurdenStatus(
        region=region,
        estimated_solitary=parse_count(estimated_solitary),
        social_workers=social_workers,
        care_providers=care_providers,
        users_served=users_served,
        staff_per_user=ratio,
        is_overloaded=ratio > OVERLOAD_THRESHOLD,
        severity_pct=severity_percentage(ratio),
        institution_count=parse_count(institution_count),
    )


def estimate_from_rollup(rollup: RegionRollup, estimated_solitary: int = 0) -> CareBurdenStatus:
    return estimate_care_burden(
        rollup.region,
        social_workers=rollup.social_workers,
        care_providers=rollup.care_providers,
        users_served=rollup.users_served,
        estimated_solitary=estimated_solitary,
        institution_count=rollup.submissions,
    )


def alert_briefing(
    alert_regions: Iterable[str],
    statuses: Iterable[CareBurdenStatus],
) -> List[CareBurdenStatus]:
    """
    Statuses for the regions under an active weather alert, in alert order.

    Alert regions with no status are skipped.
    """
    by_region = {status.region: status for status in statuses}
    return [by_region[region] for region in alert_regions if region in by_region]


class CareBurdenEstimator:
    """
    Batch interface holding the external solitary-elder estimates.

    Usage:
        estimator = CareBurdenEstimator({'창원시': 21000})
        statuses = estimator.estimate_regions(result.ordered())
    """

    def __init__(self, solitary_estimates: Optional[Mapping[str, int]] = None):
        self.solitary_estimates: Dict[str, int] = dict(solitary_estimates or {})

    def solitary_for(self, region: str) -> int:
        return parse_count(self.solitary_estimates.get(region, 0))

    def estimate_rollup(self, rollup: RegionRollup) -> CareBurdenStatus:
        return estimate_from_rollup(rollup, self.solitary_for(rollup.region))

    def estimate_regions(self, rollups: Iterable[RegionRollup]) -> List[CareBurdenStatus]:
        statuses = [self.estimate_rollup(rollup) for rollup in rollups]
        overloaded = [s.region for s in statuses if s.is_overloaded]
        if overloaded:
            logger.info(f"Overloaded regions: {', '.join(overloaded)}")
        return statuses

    def estimate_from_directory(
        self,
        directory: InstitutionDirectory,
        regions: Optional[Iterable[str]] = None,
    ) -> List[CareBurdenStatus]:
        """
        Estimate from roster actuals (hired staff, users served).

        Used when no survey month is loaded: the profile spreadsheet's
        hired and served counts stand in for the survey sums.
        """
        regions = tuple(regions) if regions is not None else directory.regions
        sums = {region: {'count': 0, 'sw': 0, 'cg': 0, 'users': 0} for region in regions}

        for info in directory:
            entry = sums.get(info.region)
            if entry is None:
                continue
            entry['count'] += 1
            entry['sw'] += info.hired_social_workers
            entry['cg'] += info.hired_care_providers
            entry['users'] += info.users_served

        return [
            estimate_care_burden(
                region,
                social_workers=entry['sw'],
                care_providers=entry['cg'],
                users_served=entry['users'],
                estimated_solitary=self.solitary_for(region),
                institution_count=entry['count'],
            )
            for region, entry in sums.items()
        ]

    @staticmethod
    def to_frame(statuses: Iterable[CareBurdenStatus]) -> pd.DataFrame:
        return pd.DataFrame([s.to_dict() for s in statuses])


def interpret_status(status: CareBurdenStatus) -> str:
    """Plain-language summary line for the alert briefing."""
    line = (
        f"{status.region}: about {status.estimated_solitary:,} solitary elders, "
        f"{status.staff_per_user} users per staff member"
    )
    if status.is_overloaded:
        line += f" (overloaded, severity {status.severity_pct:.0f}%)"
    return line

