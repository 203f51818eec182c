"""
Reconciliation Service

Loads one month from the repository and runs it through the
reconciliation core. Every call re-reads the full month and recomputes
from scratch; no rollup is cached between requests.
"""

import logging
from dataclasses import asdict
from typing import Dict, List, Optional

from care_survey.aggregation.allocation import allocation_mismatches
from care_survey.aggregation.regional import aggregate_month, institution_statuses
from care_survey.calculators.care_burden import CareBurdenEstimator, alert_briefing
from care_survey.submission import assignment_changes, submission_to_record
from care_survey.validators.consistency import validate_batch
from infrastructure.database.repository import SurveyRepository

logger = logging.getLogger(__name__)


class MonthNotFoundError(LookupError):
    """Raised when a requested month has no submissions."""


class ReconciliationService:
    """
    Month-scoped reconciliation queries.

    Args:
        repository: SurveyRepository bound to an open session
        solitary_estimates: Region -> estimated solitary elder population
    """

    def __init__(self, repository: SurveyRepository, solitary_estimates: Optional[Dict[str, int]] = None):
        self.repository = repository
        self.estimator = CareBurdenEstimator(solitary_estimates)

    def available_months(self) -> List[str]:
        return self.repository.list_months()

    def resolve_month(self, month: Optional[str]) -> str:
        """
        Pick the requested month, or the most recent one.

        Raises:
            MonthNotFoundError: If the month has no data (or none exists)
        """
        if not month:
            month = self.repository.latest_month()
            if month is None:
                raise MonthNotFoundError("No survey months available")
            return month

        if not self.repository.has_month(month):
            logger.warning(f"Requested unknown month {month!r}")
            raise MonthNotFoundError(f"No submissions for month {month!r}")
        return month

    def _load(self, month: Optional[str]):
        month = self.resolve_month(month)
        return month, self.repository.list_submissions(month), self.repository.load_directory()

    def surveys(self, month: Optional[str] = None) -> List[dict]:
        _, submissions, _ = self._load(month)
        return [submission_to_record(s) for s in submissions]

    def validation(self, month: Optional[str] = None) -> Dict[str, Dict[str, str]]:
        _, submissions, directory = self._load(month)
        return validate_batch(submissions, directory)

    def region_stats(self, month: Optional[str] = None) -> dict:
        month, submissions, directory = self._load(month)
        result = aggregate_month(submissions, directory)
        return {
            'month': month,
            'regions': [
                {**rollup.to_dict(), 'members': [asdict(m) for m in rollup.members]}
                for rollup in result.ordered()
            ],
            'province': result.province.to_dict(),
            'unmatched_codes': result.unmatched_codes,
            'out_of_region_codes': result.out_of_region_codes,
        }

    def institutions(self, region: str, month: Optional[str] = None) -> List[dict]:
        _, submissions, directory = self._load(month)
        if region not in directory.regions:
            raise KeyError(region)
        return [asdict(s) for s in institution_statuses(region, submissions, directory)]

    def assignment_changes(self, month: Optional[str] = None) -> List[dict]:
        _, submissions, _ = self._load(month)
        return [asdict(change) for change in assignment_changes(submissions)]

    def allocation_mismatches(
        self,
        month: Optional[str] = None,
        region: Optional[str] = None,
        mismatch_only: bool = False,
        sort_key: str = 'total_abs_diff',
    ) -> List[dict]:
        _, submissions, directory = self._load(month)
        rows = allocation_mismatches(
            submissions, directory,
            region=region, mismatch_only=mismatch_only, sort_key=sort_key,
        )
        return [row.to_dict() for row in rows]

    def care_status(self, month: Optional[str] = None, alert_regions: Optional[List[str]] = None) -> List[dict]:
        _, submissions, directory = self._load(month)
        result = aggregate_month(submissions, directory)
        statuses = self.estimator.estimate_regions(result.ordered())
        if alert_regions:
            statuses = alert_briefing(alert_regions, statuses)
        return [s.to_dict() for s in statuses]
