"""
Consistency Validator

Cross-field arithmetic checks on one monthly submission. The result maps
a sheet column name to a human-readable message; a column that passes
every check is absent from the map.

Rules run in a fixed order and a column keeps the first message it
receives. One failed rule may flag several related columns with the same
message so the form can highlight them together.

Missing numbers are zero, never a violation: a half-filled draft is
checked without spurious errors on the fields it has not reached yet.

Usage:
    from care_survey.validators import validate_submission

    errors = validate_submission({'전담사회복지사_남': 3, '전담사회복지사_여': 3,
                                  '배정_전담사회복지사': 5})
    # {'전담사회복지사_남': '...exceeds allocation of 5', '전담사회복지사_여': ...}
"""

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..directory import InstitutionDirectory
from ..submission import COUNT_FIELDS, Submission, latest_by_code, submission_from_record

logger = logging.getLogger(__name__)

ValidationResult = Dict[str, str]
Rule = Callable[[Submission, bool], ValidationResult]

FIELD = {attr: column for column, attr in COUNT_FIELDS.items()}

SHORT_TERM_STAFF_FIELDS = (
    FIELD['short_social_worker_m'],
    FIELD['short_social_worker_f'],
    FIELD['short_care_provider_m'],
    FIELD['short_care_provider_f'],
)

SHORT_TERM_TOTAL_FIELDS = (
    FIELD['short_term_m'],
    FIELD['short_term_f'],
    FIELD['short_term_base_1m'],
    FIELD['short_term_extended_2m'],
    FIELD['short_term_other'],
)

NON_HUB_STAFF_MESSAGE = "short-term staffing not permitted for non-hub institutions"

GENDER_LABELS = {'m': 'male', 'f': 'female'}


def _allocation_ceiling(current: int, allocated: int, role: str, fields) -> ValidationResult:
    # An allocation of 0 means no ceiling was set
    if allocated > 0 and current > allocated:
        message = f"Current {role} count {current} exceeds allocation of {allocated}"
        return {field: message for field in fields}
    return {}


def check_social_worker_allocation(sub: Submission, is_hub: bool) -> ValidationResult:
    return _allocation_ceiling(
        sub.social_workers,
        sub.allocated_social_workers,
        'social-worker',
        (FIELD['social_worker_m'], FIELD['social_worker_f']),
    )


def check_care_provider_allocation(sub: Submission, is_hub: bool) -> ValidationResult:
    return _allocation_ceiling(
        sub.care_providers,
        sub.allocated_care_providers,
        'care-provider',
        (FIELD['care_provider_m'], FIELD['care_provider_f']),
    )


def _subset_of_general_focused(sub: Submission, prefix: str, label: str) -> ValidationResult:
    errors = {}
    for gender in ('m', 'f'):
        count = getattr(sub, f'{prefix}_{gender}')
        parent = getattr(sub, f'general_focused_{gender}')
        if count > parent:
            errors[FIELD[f'{prefix}_{gender}']] = (
                f"{label} ({GENDER_LABELS[gender]}) count {count} exceeds "
                f"general/focused ({GENDER_LABELS[gender]}) total {parent}"
            )
    return errors


def check_specialized_subset(sub: Submission, is_hub: bool) -> ValidationResult:
    return _subset_of_general_focused(sub, 'specialized', 'Specialized')


def check_new_enrollee_subset(sub: Submission, is_hub: bool) -> ValidationResult:
    return _subset_of_general_focused(sub, 'new_enrollee', 'New enrollee')


def check_hub_only_staffing(sub: Submission, is_hub: bool) -> ValidationResult:
    if not is_hub and sub.short_term_staff > 0:
        return {field: NON_HUB_STAFF_MESSAGE for field in SHORT_TERM_STAFF_FIELDS}
    return {}


def check_short_term_totals(sub: Submission, is_hub: bool) -> ValidationResult:
    by_gender = sub.short_term_by_gender
    by_duration = sub.short_term_by_duration
    if by_gender != by_duration:
        message = (
            f"Short-term user total by gender ({by_gender}) does not match "
            f"total by duration ({by_duration})"
        )
        return {field: message for field in SHORT_TERM_TOTAL_FIELDS}
    return {}


def check_short_term_new_subset(sub: Submission, is_hub: bool) -> ValidationResult:
    errors = {}
    for gender in ('m', 'f'):
        new = getattr(sub, f'short_term_new_{gender}')
        population = getattr(sub, f'short_term_{gender}')
        if new > population:
            errors[FIELD[f'short_term_new_{gender}']] = (
                f"Short-term new enrollees ({GENDER_LABELS[gender]}) {new} exceed "
                f"short-term ({GENDER_LABELS[gender]}) total {population}"
            )
    return errors


# Priority order; the first rule to flag a column wins
RULES: List[Rule] = [
    check_social_worker_allocation,
    check_care_provider_allocation,
    check_specialized_subset,
    check_new_enrollee_subset,
    check_hub_only_staffing,
    check_short_term_totals,
    check_short_term_new_subset,
]


def validate_submission(
    submission: Union[Submission, Mapping],
    directory: Optional[InstitutionDirectory] = None,
) -> ValidationResult:
    """
    Check one submission against the cross-field rules.

    Args:
        submission: Submission, or a raw record that is zero-defaulted first
        directory: Optional roster; when it knows the institution, its hub
            designation is used instead of the flag on the submission

    Returns:
        Dict mapping sheet column name to violation message (empty if clean)
    """
    sub = submission_from_record(submission)

    is_hub = directory.resolve_hub(sub) if directory is not None else sub.is_hub

    errors: ValidationResult = {}
    for rule in RULES:
        for field, message in rule(sub, is_hub).items():
            errors.setdefault(field, message)

    if errors:
        logger.debug(f"{sub.code or '<no code>'}: {len(errors)} flagged field(s)")

    return errors


def validate_batch(
    submissions: Iterable[Union[Submission, Mapping]],
    directory: Optional[InstitutionDirectory] = None,
) -> Dict[str, ValidationResult]:
    """
    Validate a month of submissions.

    Only the latest record per institution is checked, so a correction
    clears the errors of the record it replaces. Records without an
    institution code are skipped.

    Returns:
        Dict mapping institution code to its violations; clean
        submissions are omitted
    """
    results = {}
    for code, sub in latest_by_code(submissions).items():
        errors = validate_submission(sub, directory)
        if errors:
            results[code] = errors
    return results
