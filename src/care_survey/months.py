"""
Reporting month labels

Monthly survey sheets are named like "2025_3월" / "2025_12월". Labels
are sorted numerically, most recent first, to choose the default month.
"""

import re
from typing import Iterable, List, Optional, Tuple

MONTH_LABEL_PATTERN = re.compile(r'^(\d{4})_(\d{1,2})월$')


def parse_month_label(label: str) -> Optional[Tuple[int, int]]:
    """
    Parse a sheet label into (year, month).

    Returns:
        (year, month) tuple, or None when the label is not a month sheet

    Examples:
        >>> parse_month_label('2025_3월')
        (2025, 3)
        >>> parse_month_label('Sheet1') is None
        True
    """
    if not isinstance(label, str):
        return None
    match = MONTH_LABEL_PATTERN.match(label.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def format_month_label(year: int, month: int) -> str:
    return f"{year}_{month}월"


def sort_month_labels(labels: Iterable[str]) -> List[str]:
    """
    Sort labels most recent first: later year first, then larger month.

    Labels that do not parse keep their relative order at the end.
    """
    def key(label):
        parsed = parse_month_label(label)
        if parsed is None:
            return (1, 0, 0)
        year, month = parsed
        return (0, -year, -month)

    return sorted(labels, key=key)


def latest_month(labels: Iterable[str]) -> Optional[str]:
    """Default month selection: the most recent label, or None if empty."""
    ordered = sort_month_labels(labels)
    return ordered[0] if ordered else None
