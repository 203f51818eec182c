# infrastructure/database/repository.py
"""
Survey repository

CRUD access to the roster and the monthly submissions. The
reconciliation core never touches the database; callers load a month
here and hand the batch to care_survey.

Usage:
    from infrastructure.database.connection import session_scope
    from infrastructure.database.repository import SurveyRepository

    with session_scope() as session:
        repo = SurveyRepository(session)
        month = repo.latest_month()
        submissions = repo.list_submissions(month)
        directory = repo.load_directory()
"""

import logging
from typing import Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from care_survey.directory import InstitutionDirectory, InstitutionInfo
from care_survey.months import latest_month, sort_month_labels
from care_survey.submission import Submission, submission_from_record, submission_to_record

from .models import Institution, SurveySubmission

logger = logging.getLogger(__name__)


class SurveyRepository:
    """Explicit CRUD over institutions and survey submissions."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # SUBMISSIONS
    # =========================================================================

    def add_submission(self, month: str, record: Mapping) -> SurveySubmission:
        """
        Store a raw survey record for a month.

        The record is normalized to the Korean sheet columns before it is
        stored so every stored payload has the same shape.
        """
        sub = submission_from_record(record)
        row = SurveySubmission(
            month=month,
            institution_code=sub.code,
            submitted_at=sub.submitted_at or None,
            payload=submission_to_record(sub),
        )
        self.session.add(row)
        self.session.flush()
        logger.debug(f"Stored submission {row.id} for {sub.code} ({month})")
        return row

    def add_submissions(self, month: str, records: Iterable[Mapping]) -> int:
        count = 0
        for record in records:
            self.add_submission(month, record)
            count += 1
        logger.info(f"Stored {count} submission(s) for {month}")
        return count

    def get_submission(self, submission_id: int) -> Optional[SurveySubmission]:
        return self.session.get(SurveySubmission, submission_id)

    def list_submissions(self, month: str) -> List[Submission]:
        """
        A month's submissions in the order they were stored.

        ``submitted_at`` is free text from the sheet and does not sort
        reliably, so a correction loaded later is listed later.
        """
        rows = self.session.scalars(
            select(SurveySubmission)
            .where(SurveySubmission.month == month)
            .order_by(SurveySubmission.id)
        ).all()
        return [row.to_submission() for row in rows]

    def delete_submission(self, submission_id: int) -> bool:
        row = self.get_submission(submission_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    def list_months(self) -> List[str]:
        """Months with at least one submission, most recent first."""
        months = self.session.scalars(select(SurveySubmission.month).distinct()).all()
        return sort_month_labels(months)

    def latest_month(self) -> Optional[str]:
        return latest_month(self.list_months())

    def has_month(self, month: str) -> bool:
        return self.session.scalar(
            select(SurveySubmission.id).where(SurveySubmission.month == month).limit(1)
        ) is not None

    # =========================================================================
    # INSTITUTIONS
    # =========================================================================

    def upsert_institution(self, info: InstitutionInfo) -> Institution:
        row = self.session.get(Institution, info.code)
        if row is None:
            row = Institution(code=info.code)
            self.session.add(row)

        row.name = info.name
        row.region = info.region
        row.is_hub = info.is_hub
        row.expected = info.expected
        row.mow_social_workers = info.mow_social_workers
        row.mow_care_providers = info.mow_care_providers
        row.mow_users = info.mow_users
        row.hired_social_workers = info.hired_social_workers
        row.hired_care_providers = info.hired_care_providers
        row.users_served = info.users_served

        self.session.flush()
        return row

    def upsert_institutions(self, infos: Iterable[InstitutionInfo]) -> int:
        count = 0
        for info in infos:
            self.upsert_institution(info)
            count += 1
        return count

    def get_institution(self, code: str) -> Optional[Institution]:
        return self.session.get(Institution, code)

    def delete_institution(self, code: str) -> bool:
        row = self.get_institution(code)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    def list_institutions(self) -> List[Institution]:
        # Insertion order of the roster is not kept by the table; code order is stable
        return list(self.session.scalars(select(Institution).order_by(Institution.code)).all())

    def load_directory(self) -> InstitutionDirectory:
        return InstitutionDirectory(row.to_info() for row in self.list_institutions())
