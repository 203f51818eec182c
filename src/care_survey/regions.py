"""
Canonical Gyeongnam regions and region-name normalization

Region names arrive in many shapes: "창원시", "창원", "경상남도 창원시
의창구", "경남 고성군". They are normalized once, at ingestion, against the
fixed list of 18 si/gun below. That list is also the display order for
every region listing.
"""

from typing import Optional

# Canonical order (cities first, then counties) used for every ordered output
GYEONGNAM_REGIONS = (
    "창원시", "진주시", "통영시", "사천시", "김해시", "밀양시", "거제시", "양산시",
    "의령군", "함안군", "창녕군", "고성군", "남해군", "하동군", "산청군", "함양군",
    "거창군", "합천군",
)

# Province-wide support centre listed in the roster; not a si/gun
PROVINCIAL_SUPPORT_REGION = "*광역지원기관"

PROVINCE_TOKENS = ("경상남도", "경남")

ADMINISTRATIVE_SUFFIXES = ("시", "군", "구")

_REGION_ORDER = {name: i for i, name in enumerate(GYEONGNAM_REGIONS)}


def region_base(name: str) -> str:
    """
    Strip one trailing administrative suffix.

    Examples:
        >>> region_base('창원시')
        '창원'
        >>> region_base('고성군')
        '고성'
    """
    if len(name) > 2 and name.endswith(ADMINISTRATIVE_SUFFIXES):
        return name[:-1]
    return name


def _match_token(token: str) -> Optional[str]:
    if token in _REGION_ORDER:
        return token
    base = region_base(token)
    for region in GYEONGNAM_REGIONS:
        region_stem = region_base(region)
        if base == region_stem or token.startswith(region_stem):
            return region
    return None


def normalize_region(text: Optional[str], address: Optional[str] = None) -> Optional[str]:
    """
    Map free-text region (or, failing that, an address) to a canonical region.

    Matching is exact first, then on the suffix-stripped stem, then by
    prefix, token by token; the province name is skipped.

    Args:
        text: Region text as entered (e.g. '창원', '경상남도 김해시')
        address: Optional street address used as a fallback

    Returns:
        Canonical region name, or None when nothing matches

    Examples:
        >>> normalize_region('창원')
        '창원시'
        >>> normalize_region('경상남도 창원시 의창구')
        '창원시'
        >>> normalize_region('*광역지원기관') is None
        True
    """
    for candidate in (text, address):
        if not candidate:
            continue
        candidate = str(candidate).strip()
        if candidate in _REGION_ORDER:
            return candidate
        for token in candidate.split():
            if token in PROVINCE_TOKENS:
                continue
            match = _match_token(token)
            if match:
                return match
    return None


def is_canonical_region(name: Optional[str]) -> bool:
    return name in _REGION_ORDER


def region_sort_key(name: str) -> int:
    """Sort key following the canonical order; unknown regions sort last."""
    return _REGION_ORDER.get(name, len(GYEONGNAM_REGIONS))
