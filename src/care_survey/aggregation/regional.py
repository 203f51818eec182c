"""
Regional Aggregator

Rolls one month of submissions up into per-region sums and a
province-wide total. Every region in the directory's canonical list
appears in the output, so that "nobody submitted" can be told apart
from "submitted zero staff" by the submission count.

Rollups are recomputed from the full month on every call; nothing is
patched incrementally.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from ..directory import InstitutionDirectory
from ..submission import COUNT_FIELDS, Submission, latest_by_code
from ..utils import round_half_up
from ..validators.consistency import validate_submission

logger = logging.getLogger(__name__)

# Every raw count is summed, plus the two derived exit totals
SUMMED_FIELDS = tuple(COUNT_FIELDS.values()) + (
    'short_term_expired_total',
    'short_term_withdrawn_total',
)


def empty_totals() -> Dict[str, int]:
    return {name: 0 for name in SUMMED_FIELDS}


def submission_rate(submitted: int, expected: int) -> int:
    """Rounded percentage; 0 when nothing is expected."""
    if expected <= 0:
        return 0
    return round_half_up(submitted / expected * 100)


@dataclass(frozen=True)
class MemberSummary:
    """Short-fall and flag summary for one submitted member institution."""
    code: str
    name: str
    is_hub: bool
    flagged_fields: int
    social_worker_shortfall: int
    care_provider_shortfall: int


@dataclass
class RegionRollup:
    """Sums of every count across the institutions of one region."""
    region: str
    submissions: int = 0
    expected: int = 0
    submission_rate: int = 0
    hub_institution_name: Optional[str] = None
    totals: Dict[str, int] = field(default_factory=empty_totals)
    members: List[MemberSummary] = field(default_factory=list)

    def __getitem__(self, name: str) -> int:
        return self.totals[name]

    @property
    def social_workers(self) -> int:
        return self.totals['social_worker_m'] + self.totals['social_worker_f']

    @property
    def care_providers(self) -> int:
        return self.totals['care_provider_m'] + self.totals['care_provider_f']

    @property
    def users_served(self) -> int:
        return sum(self.totals[name] for name in ('general_m', 'focused_m', 'general_f', 'focused_f'))

    @property
    def has_submissions(self) -> bool:
        return self.submissions > 0

    def to_dict(self) -> dict:
        return {
            'region': self.region,
            'submissions': self.submissions,
            'expected': self.expected,
            'submission_rate': self.submission_rate,
            'hub_institution_name': self.hub_institution_name,
            **self.totals,
        }


@dataclass
class ProvinceTotals:
    submissions: int = 0
    expected: int = 0
    submission_rate: int = 0
    totals: Dict[str, int] = field(default_factory=empty_totals)

    def to_dict(self) -> dict:
        return {
            'submissions': self.submissions,
            'expected': self.expected,
            'submission_rate': self.submission_rate,
            **self.totals,
        }


@dataclass
class AggregationResult:
    """
    Output of one aggregation pass.

    ``rollups`` is keyed by region in canonical order. ``unmatched_codes``
    lists submissions whose institution code is not in the directory;
    ``out_of_region_codes`` lists listed institutions whose region is not
    one of the canonical regions. ``codeless_count`` counts records that
    carried no institution code at all. None of these contribute to any
    rollup.
    """
    rollups: Dict[str, RegionRollup]
    province: ProvinceTotals
    unmatched_codes: List[str] = field(default_factory=list)
    out_of_region_codes: List[str] = field(default_factory=list)
    codeless_count: int = 0

    @property
    def unmatched_count(self) -> int:
        return len(self.unmatched_codes) + self.codeless_count

    def ordered(self) -> List[RegionRollup]:
        return list(self.rollups.values())

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([r.to_dict() for r in self.ordered()])


def _shortfall(allocated: int, current: int) -> int:
    if allocated <= 0:
        return 0
    return max(allocated - current, 0)


def _member_summary(sub: Submission, directory: InstitutionDirectory, is_hub: bool) -> MemberSummary:
    info = directory.get(sub.code)
    return MemberSummary(
        code=sub.code,
        name=info.name or sub.name,
        is_hub=is_hub,
        flagged_fields=len(validate_submission(sub, directory)),
        social_worker_shortfall=_shortfall(sub.allocated_social_workers, sub.social_workers),
        care_provider_shortfall=_shortfall(sub.allocated_care_providers, sub.care_providers),
    )


def aggregate_month(
    submissions: Iterable[Union[Submission, Mapping]],
    directory: InstitutionDirectory,
) -> AggregationResult:
    """
    Aggregate one month of submissions by region.

    Args:
        submissions: The month's submissions, in load order
        directory: Roster giving region, hub status and expected flag

    Returns:
        AggregationResult with one rollup per canonical region
    """
    rollups = {
        region: RegionRollup(region=region, expected=directory.expected_count(region))
        for region in directory.regions
    }
    province = ProvinceTotals()
    unmatched: List[str] = []
    out_of_region: List[str] = []
    expected_submitted: Dict[str, int] = {region: 0 for region in directory.regions}
    codeless: List[Submission] = []

    for code, sub in latest_by_code(submissions, codeless=codeless).items():
        info = directory.get(code)
        if info is None:
            logger.warning(f"Unmatched institution code {code!r} ({sub.name}); excluded from rollups")
            unmatched.append(code)
            continue

        rollup = rollups.get(info.region)
        if rollup is None:
            logger.warning(f"Institution {code} is listed under {info.region!r}, not a known region")
            out_of_region.append(code)
            continue

        rollup.submissions += 1
        if info.expected:
            expected_submitted[info.region] += 1

        for name in SUMMED_FIELDS:
            rollup.totals[name] += getattr(sub, name)

        # Roster designation decides, as in validation
        is_hub = directory.resolve_hub(sub)
        if is_hub:
            rollup.hub_institution_name = info.name or sub.name

        rollup.members.append(_member_summary(sub, directory, is_hub))

    for region, rollup in rollups.items():
        rollup.submission_rate = submission_rate(expected_submitted[region], rollup.expected)
        province.submissions += rollup.submissions
        province.expected += rollup.expected
        for name in SUMMED_FIELDS:
            province.totals[name] += rollup.totals[name]

    province.submission_rate = submission_rate(sum(expected_submitted.values()), province.expected)

    logger.info(
        f"Aggregated {province.submissions} submission(s) across {len(rollups)} regions "
        f"({province.submission_rate}% of {province.expected} expected, "
        f"{len(unmatched)} unmatched, {len(codeless)} without code)"
    )

    return AggregationResult(
        rollups=rollups,
        province=province,
        unmatched_codes=unmatched,
        out_of_region_codes=out_of_region,
        codeless_count=len(codeless),
    )


@dataclass(frozen=True)
class InstitutionStatus:
    code: str
    name: str
    submitted: bool
    is_hub: bool
    flagged_fields: int = 0


def institution_statuses(
    region: str,
    submissions: Iterable[Union[Submission, Mapping]],
    directory: InstitutionDirectory,
) -> List[InstitutionStatus]:
    """
    Per-institution submission status for one region, in roster order.

    The hub flag comes from the submission; institutions that have not
    submitted show False.
    """
    submitted = latest_by_code(submissions)
    statuses = []
    for info in directory.institutions_in(region):
        sub = submitted.get(info.code)
        statuses.append(InstitutionStatus(
            code=info.code,
            name=info.name,
            submitted=sub is not None,
            is_hub=sub.is_hub if sub is not None else False,
            flagged_fields=len(validate_submission(sub, directory)) if sub is not None else 0,
        ))
    return statuses
