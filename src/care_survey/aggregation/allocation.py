"""
Allocation mismatch report

Compares the ministry (MOW) allocation on each institution's roster
entry with the allocation the institution itself reported in this
month's survey. A mismatch usually means either the roster or the form
is out of date.
"""

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Union

from ..directory import InstitutionDirectory
from ..regions import PROVINCIAL_SUPPORT_REGION
from ..submission import Submission, latest_by_code

SORT_KEYS = ('total_abs_diff', 'diff_social_workers', 'diff_care_providers', 'diff_users')


@dataclass(frozen=True)
class AllocationMismatchRow:
    code: str
    name: str
    region: str
    mow_social_workers: int
    submitted_social_workers: int
    mow_care_providers: int
    submitted_care_providers: int
    mow_users: int
    submitted_users: int
    submitted: bool

    @property
    def diff_social_workers(self) -> int:
        return self.submitted_social_workers - self.mow_social_workers

    @property
    def diff_care_providers(self) -> int:
        return self.submitted_care_providers - self.mow_care_providers

    @property
    def diff_users(self) -> int:
        return self.submitted_users - self.mow_users

    @property
    def total_abs_diff(self) -> int:
        return abs(self.diff_social_workers) + abs(self.diff_care_providers) + abs(self.diff_users)

    @property
    def has_mismatch(self) -> bool:
        # Non-submitters show the full allocation as a diff but are not mismatches
        return self.submitted and self.total_abs_diff > 0

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'name': self.name,
            'region': self.region,
            'mow_social_workers': self.mow_social_workers,
            'submitted_social_workers': self.submitted_social_workers,
            'diff_social_workers': self.diff_social_workers,
            'mow_care_providers': self.mow_care_providers,
            'submitted_care_providers': self.submitted_care_providers,
            'diff_care_providers': self.diff_care_providers,
            'mow_users': self.mow_users,
            'submitted_users': self.submitted_users,
            'diff_users': self.diff_users,
            'total_abs_diff': self.total_abs_diff,
            'submitted': self.submitted,
            'has_mismatch': self.has_mismatch,
        }


def allocation_mismatches(
    submissions: Iterable[Union[Submission, Mapping]],
    directory: InstitutionDirectory,
    region: Optional[str] = None,
    mismatch_only: bool = False,
    sort_key: str = 'total_abs_diff',
) -> List[AllocationMismatchRow]:
    """
    Build the allocation mismatch rows for a month.

    Args:
        submissions: The month's submissions
        directory: Roster carrying the MOW allocation
        region: Only rows for this region (None for all)
        mismatch_only: Drop rows without a mismatch
        sort_key: One of SORT_KEYS; rows sort by descending absolute value,
            ties keep roster order

    Returns:
        List of AllocationMismatchRow

    Raises:
        ValueError: If sort_key is not one of SORT_KEYS
    """
    if sort_key not in SORT_KEYS:
        raise ValueError(f"sort_key must be one of {SORT_KEYS}, got {sort_key!r}")

    submitted = latest_by_code(submissions)
    rows = []
    for info in directory:
        if info.region == PROVINCIAL_SUPPORT_REGION:
            continue
        sub = submitted.get(info.code)
        rows.append(AllocationMismatchRow(
            code=info.code,
            name=info.name,
            region=info.region,
            mow_social_workers=info.mow_social_workers,
            submitted_social_workers=sub.allocated_social_workers if sub else 0,
            mow_care_providers=info.mow_care_providers,
            submitted_care_providers=sub.allocated_care_providers if sub else 0,
            mow_users=info.mow_users,
            submitted_users=sub.allocated_users if sub else 0,
            submitted=sub is not None,
        ))

    if region is not None:
        rows = [row for row in rows if row.region == region]
    if mismatch_only:
        rows = [row for row in rows if row.has_mismatch]

    return sorted(rows, key=lambda row: -abs(getattr(row, sort_key)))
