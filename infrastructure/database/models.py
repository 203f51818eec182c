# infrastructure/database/models.py
"""
SQLAlchemy ORM models for the elder-care survey dashboard.

Two tables back the monthly dashboard: the institution roster and the
raw survey submissions. Submissions keep the sheet record as JSON so a
later correction never loses what was originally entered; typed views
are produced by care_survey.submission at read time.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from care_survey.directory import InstitutionInfo
from care_survey.submission import Submission, submission_from_record


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Institution(Base):
    """
    Service institution from the roster and profile spreadsheet.

    ``region`` is stored already normalized to the canonical si/gun.
    """
    __tablename__ = "institutions"

    # Primary key
    code: Mapped[str] = mapped_column(String(20), primary_key=True)

    # Core fields
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    region: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    is_hub: Mapped[bool] = mapped_column(Boolean, default=False)
    expected: Mapped[bool] = mapped_column(Boolean, default=True)

    # Ministry allocation
    mow_social_workers: Mapped[int] = mapped_column(Integer, default=0)
    mow_care_providers: Mapped[int] = mapped_column(Integer, default=0)
    mow_users: Mapped[int] = mapped_column(Integer, default=0)

    # Profile actuals
    hired_social_workers: Mapped[int] = mapped_column(Integer, default=0)
    hired_care_providers: Mapped[int] = mapped_column(Integer, default=0)
    users_served: Mapped[int] = mapped_column(Integer, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Institution {self.code}: {self.name} ({self.region})>"

    def to_info(self) -> InstitutionInfo:
        return InstitutionInfo(
            code=self.code,
            name=self.name or "",
            region=self.region or "",
            is_hub=bool(self.is_hub),
            expected=bool(self.expected),
            mow_social_workers=self.mow_social_workers or 0,
            mow_care_providers=self.mow_care_providers or 0,
            mow_users=self.mow_users or 0,
            hired_social_workers=self.hired_social_workers or 0,
            hired_care_providers=self.hired_care_providers or 0,
            users_served=self.users_served or 0,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        return {
            "code": self.code,
            "name": self.name,
            "region": self.region,
            "is_hub": self.is_hub,
            "expected": self.expected,
            "mow_social_workers": self.mow_social_workers,
            "mow_care_providers": self.mow_care_providers,
            "mow_users": self.mow_users,
            "hired_social_workers": self.hired_social_workers,
            "hired_care_providers": self.hired_care_providers,
            "users_served": self.users_served,
        }


class SurveySubmission(Base):
    """
    One raw monthly survey record.

    ``month`` is the sheet label ("2025_3월"). A correction is stored as
    a new row for the same institution and month.
    """
    __tablename__ = "survey_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    month: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    institution_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    submitted_at: Mapped[Optional[str]] = mapped_column(String(40))
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("month", "institution_code", "submitted_at",
                         name="uq_submission_month_code_time"),
    )

    def __repr__(self) -> str:
        return f"<SurveySubmission {self.month} {self.institution_code} @ {self.submitted_at}>"

    def to_submission(self) -> Submission:
        return submission_from_record(self.payload or {})

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        return {
            "id": self.id,
            "month": self.month,
            "institution_code": self.institution_code,
            "submitted_at": self.submitted_at,
            "payload": self.payload,
        }
