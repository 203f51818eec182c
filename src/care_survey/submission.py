"""
Submission Record

One institution's monthly survey report. The survey sheets use Korean
column names; they are mapped once onto typed, zero-defaulted attributes
so that validation and aggregation never repeat the missing-value checks.

Usage:
    from care_survey.submission import submission_from_record

    sub = submission_from_record({'기관코드': 'A001', '전담사회복지사_남': 3})
    sub.social_workers   # 3
"""

import logging
from dataclasses import asdict, dataclass, fields
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .utils import parse_count, parse_flag, parse_optional_count, parse_text

logger = logging.getLogger(__name__)

# Identity / contact columns
TEXT_FIELDS: Dict[str, str] = {
    '제출일시': 'submitted_at',
    '시군': 'region',
    '기관명': 'name',
    '기관코드': 'code',
    '담당자_이름': 'contact_name',
    '담당자_연락처': 'contact_phone',
    '변경여부': 'change_flag',
    '변경일자': 'change_date',
}

# Every head-count column, in sheet order
COUNT_FIELDS: Dict[str, str] = {
    # Regular staffing
    '전담사회복지사_남': 'social_worker_m',
    '전담사회복지사_여': 'social_worker_f',
    '생활지원사_남': 'care_provider_m',
    '생활지원사_여': 'care_provider_f',
    # Short-term staffing (hub institutions only)
    '단기_전담인력_사회복지사_남': 'short_social_worker_m',
    '단기_전담인력_사회복지사_여': 'short_social_worker_f',
    '단기_전담인력_돌봄제공인력_남': 'short_care_provider_m',
    '단기_전담인력_돌봄제공인력_여': 'short_care_provider_f',
    # General / focused users
    '일반중점_남_일반': 'general_m',
    '일반중점_남_중점': 'focused_m',
    '일반중점_여_일반': 'general_f',
    '일반중점_여_중점': 'focused_f',
    # Short-term users
    '단기_남': 'short_term_m',
    '단기_여': 'short_term_f',
    '단기_기본_1개월': 'short_term_base_1m',
    '단기_연장_2개월': 'short_term_extended_2m',
    '단기_기타': 'short_term_other',
    '단기_당월신규': 'short_term_new',
    '단기_당월신규_남': 'short_term_new_m',
    '단기_당월신규_여': 'short_term_new_f',
    '단기_기간만료': 'short_term_expired',
    '단기_중도포기': 'short_term_withdrawn',
    '단기_기간만료_남': 'short_term_expired_m',
    '단기_기간만료_여': 'short_term_expired_f',
    '단기_중도포기_남': 'short_term_withdrawn_m',
    '단기_중도포기_여': 'short_term_withdrawn_f',
    # Specialized program and new enrollees
    '특화_남': 'specialized_m',
    '특화_여': 'specialized_f',
    '신규대상자_남': 'new_enrollee_m',
    '신규대상자_여': 'new_enrollee_f',
    # Terminations
    '종결자_남_사망': 'terminated_m_death',
    '종결자_남_서비스거부': 'terminated_m_refused',
    '종결자_남_기타': 'terminated_m_other',
    '종결자_여_사망': 'terminated_f_death',
    '종결자_여_서비스거부': 'terminated_f_refused',
    '종결자_여_기타': 'terminated_f_other',
    # Budget allocation (0 means no ceiling)
    '배정_전담사회복지사': 'allocated_social_workers',
    '배정_생활지원사': 'allocated_care_providers',
    '배정_이용자': 'allocated_users',
}

# Change-of-assignment deltas; None when the institution reported no change
CHANGE_FIELDS: Dict[str, str] = {
    '변경_전담사회복지사': 'changed_social_workers',
    '변경_생활지원사': 'changed_care_providers',
    '변경_이용자': 'changed_users',
}

HUB_FIELD = '거점수행기관여부'

# Reverse lookup used when reporting violations by sheet column
ATTRIBUTE_TO_FIELD: Dict[str, str] = {
    attr: column
    for mapping in (TEXT_FIELDS, COUNT_FIELDS, CHANGE_FIELDS)
    for column, attr in mapping.items()
}
ATTRIBUTE_TO_FIELD['is_hub'] = HUB_FIELD

# 변경여부 value that marks a change of assignment
CHANGE_MARKER = '유'


@dataclass(frozen=True)
class AssignmentChange:
    """Informational change-of-assignment record attached to a submission."""
    code: str
    name: str
    region: str
    submitted_at: str
    changed_social_workers: Optional[int] = None
    changed_care_providers: Optional[int] = None
    changed_users: Optional[int] = None
    change_date: str = ""


@dataclass(frozen=True)
class Submission:
    """
    One institution's report for one calendar month.

    All counts are non-negative integers; a value the institution left
    blank is stored as 0. ``is_hub`` marks a designated short-term hub.
    """
    code: str = ""
    name: str = ""
    region: str = ""
    submitted_at: str = ""
    contact_name: str = ""
    contact_phone: str = ""
    is_hub: bool = False

    social_worker_m: int = 0
    social_worker_f: int = 0
    care_provider_m: int = 0
    care_provider_f: int = 0

    short_social_worker_m: int = 0
    short_social_worker_f: int = 0
    short_care_provider_m: int = 0
    short_care_provider_f: int = 0

    general_m: int = 0
    focused_m: int = 0
    general_f: int = 0
    focused_f: int = 0

    short_term_m: int = 0
    short_term_f: int = 0
    short_term_base_1m: int = 0
    short_term_extended_2m: int = 0
    short_term_other: int = 0
    short_term_new: int = 0
    short_term_new_m: int = 0
    short_term_new_f: int = 0
    short_term_expired: int = 0
    short_term_withdrawn: int = 0
    short_term_expired_m: int = 0
    short_term_expired_f: int = 0
    short_term_withdrawn_m: int = 0
    short_term_withdrawn_f: int = 0

    specialized_m: int = 0
    specialized_f: int = 0
    new_enrollee_m: int = 0
    new_enrollee_f: int = 0

    terminated_m_death: int = 0
    terminated_m_refused: int = 0
    terminated_m_other: int = 0
    terminated_f_death: int = 0
    terminated_f_refused: int = 0
    terminated_f_other: int = 0

    allocated_social_workers: int = 0
    allocated_care_providers: int = 0
    allocated_users: int = 0

    change_flag: str = ""
    change_date: str = ""
    changed_social_workers: Optional[int] = None
    changed_care_providers: Optional[int] = None
    changed_users: Optional[int] = None

    def __repr__(self) -> str:
        return f"<Submission {self.code}: {self.name} ({self.region})>"

    # --- Derived totals ---

    @property
    def social_workers(self) -> int:
        return self.social_worker_m + self.social_worker_f

    @property
    def care_providers(self) -> int:
        return self.care_provider_m + self.care_provider_f

    @property
    def short_term_staff(self) -> int:
        return (self.short_social_worker_m + self.short_social_worker_f
                + self.short_care_provider_m + self.short_care_provider_f)

    @property
    def general_focused_m(self) -> int:
        return self.general_m + self.focused_m

    @property
    def general_focused_f(self) -> int:
        return self.general_f + self.focused_f

    @property
    def users_served(self) -> int:
        """General plus focused users of both genders."""
        return self.general_focused_m + self.general_focused_f

    @property
    def short_term_by_gender(self) -> int:
        return self.short_term_m + self.short_term_f

    @property
    def short_term_by_duration(self) -> int:
        return self.short_term_base_1m + self.short_term_extended_2m + self.short_term_other

    @property
    def short_term_expired_total(self) -> int:
        """Gendered expiries when reported, otherwise the legacy single column."""
        return (self.short_term_expired_m + self.short_term_expired_f) or self.short_term_expired

    @property
    def short_term_withdrawn_total(self) -> int:
        return (self.short_term_withdrawn_m + self.short_term_withdrawn_f) or self.short_term_withdrawn

    @property
    def has_assignment_change(self) -> bool:
        return self.change_flag == CHANGE_MARKER or any(
            value is not None
            for value in (self.changed_social_workers,
                          self.changed_care_providers,
                          self.changed_users)
        )

    @property
    def assignment_change(self) -> Optional[AssignmentChange]:
        if not self.has_assignment_change:
            return None
        return AssignmentChange(
            code=self.code,
            name=self.name,
            region=self.region,
            submitted_at=self.submitted_at,
            changed_social_workers=self.changed_social_workers,
            changed_care_providers=self.changed_care_providers,
            changed_users=self.changed_users,
            change_date=self.change_date,
        )

    def counts(self) -> Dict[str, int]:
        """All head-count attributes keyed by attribute name."""
        return {attr: getattr(self, attr) for attr in COUNT_FIELDS.values()}


def submission_from_record(record: Mapping) -> Submission:
    """
    Build a Submission from a raw sheet/API record.

    Keys may be the Korean sheet columns or the English attribute names.
    Unknown keys are ignored; missing or malformed counts become 0.

    Args:
        record: Mapping of column name to raw cell value

    Returns:
        Zero-defaulted Submission
    """
    if isinstance(record, Submission):
        return record

    def lookup(column: str, attr: str):
        if column in record:
            return record[column]
        return record.get(attr)

    values = {}
    for column, attr in TEXT_FIELDS.items():
        values[attr] = parse_text(lookup(column, attr))
    for column, attr in COUNT_FIELDS.items():
        values[attr] = parse_count(lookup(column, attr))
    for column, attr in CHANGE_FIELDS.items():
        values[attr] = parse_optional_count(lookup(column, attr))
    values['is_hub'] = parse_flag(lookup(HUB_FIELD, 'is_hub'))

    return Submission(**values)


def submission_to_record(submission: Submission) -> Dict:
    """Convert back to a Korean-keyed record, e.g. for JSON export."""
    data = asdict(submission)
    return {ATTRIBUTE_TO_FIELD[f.name]: data[f.name] for f in fields(Submission)}


def submissions_from_records(records: Iterable[Mapping]) -> List[Submission]:
    return [submission_from_record(r) for r in records]


def submissions_from_frame(df: pd.DataFrame) -> List[Submission]:
    """
    Convert a survey sheet loaded with pandas into Submissions.

    NaN cells are treated the same as blanks.
    """
    return [submission_from_record(row) for row in df.to_dict(orient='records')]


def submissions_to_frame(submissions: Iterable[Submission]) -> pd.DataFrame:
    return pd.DataFrame([submission_to_record(s) for s in submissions])


def assignment_changes(submissions: Iterable[Submission]) -> List[AssignmentChange]:
    """Change-of-assignment records for a month, in submission order."""
    changes = []
    for submission in submissions:
        change = submission_from_record(submission).assignment_change
        if change is not None:
            changes.append(change)
    return changes


def latest_by_code(
    submissions: Iterable[Mapping],
    codeless: Optional[List[Submission]] = None,
) -> Dict[str, Submission]:
    """
    One submission per institution code, keeping the later record.

    A correction is a new record for the same institution and month, so
    the later one in load order supersedes the earlier. Records without
    an institution code cannot be matched to anything; they are left out
    and, when ``codeless`` is given, appended to it.
    """
    latest: Dict[str, Submission] = {}
    skipped = 0
    for raw in submissions:
        sub = submission_from_record(raw)
        if not sub.code:
            skipped += 1
            if codeless is not None:
                codeless.append(sub)
            continue
        if sub.code in latest:
            logger.warning(f"Institution {sub.code} submitted more than once; using the later record")
        latest[sub.code] = sub

    if skipped:
        logger.warning(f"{skipped} submission(s) without an institution code")
    return latest
