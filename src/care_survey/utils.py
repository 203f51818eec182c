"""
Value coercion helpers shared by the reconciliation core

Survey spreadsheets and form drafts arrive with blanks, dashes, stray
commas and NaN cells. Every numeric field is parsed once at the ingestion
boundary with a default of zero so that downstream rules read a fully
typed record.

Usage:
    from care_survey.utils import parse_count, parse_flag, round_half_up
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

import pandas as pd

# Markers used in the monthly sheets for "nothing entered"
SUPPRESSED_VALUES = ('*', '-', '', 'N/A', 'n/a', 'NA', 'null', 'NULL', 'None')

TRUE_FLAGS = ('true', 'y', 'yes', '1', '예', '유', '해당', 'o')


def is_missing(val) -> bool:
    if val is None:
        return True
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        # list-like cells make pd.isna return an array
        return True


def parse_count(val, default: int = 0) -> int:
    """
    Parse a head-count cell, returning ``default`` for anything unusable.

    Counts are non-negative integers. Missing cells, suppressed markers,
    non-numeric text, negative numbers and infinities all collapse to the
    default rather than raising.

    Args:
        val: Raw cell value (int, float, str, None, NaN)
        default: Value returned when the cell cannot be used

    Returns:
        Non-negative integer count

    Examples:
        >>> parse_count(3)
        3
        >>> parse_count("1,200")
        1200
        >>> parse_count("-")
        0
        >>> parse_count(None)
        0
    """
    if isinstance(val, bool):
        return int(val)
    if is_missing(val):
        return default

    if isinstance(val, str):
        cleaned = val.strip().replace(',', '')
        if cleaned in SUPPRESSED_VALUES:
            return default
        val = cleaned

    try:
        number = float(val)
    except (TypeError, ValueError):
        return default

    if math.isnan(number) or math.isinf(number) or number < 0:
        return default

    return int(number)


def parse_optional_count(val):
    """Like parse_count, but keeps ``None`` for cells that were never filled."""
    if is_missing(val):
        return None
    if isinstance(val, str) and val.strip() in SUPPRESSED_VALUES:
        return None
    return parse_count(val)


def parse_flag(val) -> bool:
    """
    Parse a yes/no cell.

    Accepts real booleans, 1/0 and the spellings used in the survey
    sheets ("Y", "예", "유", "해당", "true"). Anything else is False.
    """
    if isinstance(val, bool):
        return val
    if is_missing(val):
        return False
    if isinstance(val, (int, float)):
        return val == 1
    return str(val).strip().lower() in TRUE_FLAGS


def parse_text(val) -> str:
    """Strip a text cell, mapping missing values to an empty string."""
    if is_missing(val):
        return ""
    return str(val).strip()


def round_half_up(value: Union[int, float], digits: int = 0) -> Union[int, float]:
    """
    Round with halves going up, the way the dashboard rounds percentages.

    Python's built-in round() uses banker's rounding, which would report
    a 12.5% submission rate as 12 instead of 13.

    Examples:
        >>> round_half_up(12.5)
        13
        >>> round_half_up(12.25, 1)
        12.3
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits <= 0:
        return int(rounded)
    return float(rounded)
