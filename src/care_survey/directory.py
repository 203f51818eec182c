"""
Institution Directory

Roster of service institutions keyed by institution code. It is the
authority on which region an institution belongs to, whether it is a
short-term hub, and whether a report is expected this month. The
roster arrives from a static list plus the institution profile
spreadsheet; region text is normalized here, once.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .regions import GYEONGNAM_REGIONS, normalize_region
from .submission import Submission
from .utils import is_missing, parse_count, parse_flag, parse_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstitutionInfo:
    """
    Directory entry for one institution.

    ``region`` is the canonical si/gun when the roster text could be
    normalized, otherwise the roster text unchanged (e.g. the provincial
    support centre). The ``mow_*`` columns are the ministry allocation;
    ``hired_*`` / ``users_served`` are the profile actuals.
    """
    code: str
    name: str = ""
    region: str = ""
    is_hub: bool = False
    expected: bool = True
    mow_social_workers: int = 0
    mow_care_providers: int = 0
    mow_users: int = 0
    hired_social_workers: int = 0
    hired_care_providers: int = 0
    users_served: int = 0

    @classmethod
    def from_record(cls, record: Mapping) -> "InstitutionInfo":
        """
        Build an entry from a roster row or an institution-profile record.

        Accepts flat English keys, the Korean survey columns, or the
        nested ``allocation.mow`` / ``allocation.actual`` profile layout.
        """
        def first(*keys, default=None):
            for key in keys:
                if key in record and not is_missing(record[key]):
                    return record[key]
            return default

        def section(parent, key) -> Mapping:
            value = parent.get(key) if isinstance(parent, Mapping) else None
            return value if isinstance(value, Mapping) else {}

        allocation = section(record, 'allocation')
        mow = section(allocation, 'mow')
        actual = section(allocation, 'actual')

        raw_region = parse_text(first('region', '시군', '지자체'))
        address = parse_text(first('address', '주소'))
        region = normalize_region(raw_region, address) or raw_region

        return cls(
            code=parse_text(first('code', '기관코드', '수행기관코드')),
            name=parse_text(first('name', '기관명', '수행기관명')),
            region=region,
            is_hub=parse_flag(first('is_hub', '거점수행기관여부', default=False)),
            expected=parse_flag(first('expected', '제출대상', default=True)),
            mow_social_workers=parse_count(first('mow_social_workers', default=mow.get('socialWorker'))),
            mow_care_providers=parse_count(first('mow_care_providers', default=mow.get('careProvider'))),
            mow_users=parse_count(first('mow_users', default=mow.get('users'))),
            hired_social_workers=parse_count(
                first('hired_social_workers', default=actual.get('socialWorkerHired'))),
            hired_care_providers=parse_count(
                first('hired_care_providers', default=actual.get('careProviderHired'))),
            users_served=parse_count(first('users_served', default=actual.get('usersServed'))),
        )


class InstitutionDirectory:
    """
    Lookup table: institution code -> InstitutionInfo.

    Entries keep roster order. ``regions`` is the canonical region
    enumeration used for every ordered listing.
    """

    def __init__(
        self,
        institutions: Iterable[InstitutionInfo],
        regions: Sequence[str] = GYEONGNAM_REGIONS,
    ):
        self.regions = tuple(regions)
        self._by_code: Dict[str, InstitutionInfo] = {}
        for info in institutions:
            if not info.code:
                logger.warning(f"Skipping roster entry without institution code: {info.name!r}")
                continue
            if info.code in self._by_code:
                logger.warning(f"Duplicate roster entry for {info.code}; keeping the later one")
            self._by_code[info.code] = info

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, code: str) -> bool:
        return code in self._by_code

    def __iter__(self):
        return iter(self._by_code.values())

    def get(self, code: str) -> Optional[InstitutionInfo]:
        return self._by_code.get(code)

    def region_of(self, code: str) -> Optional[str]:
        info = self._by_code.get(code)
        return info.region if info else None

    def is_hub(self, code: str) -> Optional[bool]:
        info = self._by_code.get(code)
        return info.is_hub if info else None

    def resolve_hub(self, submission: Submission) -> bool:
        """
        Hub designation for a submission.

        The roster decides for listed institutions; the flag on the
        submission is used only for codes the roster does not know.
        """
        listed = self.is_hub(submission.code)
        return submission.is_hub if listed is None else listed

    def institutions_in(self, region: str) -> List[InstitutionInfo]:
        """Entries in one region, roster order."""
        return [info for info in self._by_code.values() if info.region == region]

    def expected_count(self, region: Optional[str] = None) -> int:
        """Institutions expected to report, in one region or in the known regions."""
        if region is not None:
            return sum(1 for info in self.institutions_in(region) if info.expected)
        return sum(1 for info in self._by_code.values()
                   if info.expected and info.region in self.regions)

    @classmethod
    def from_records(cls, records: Iterable[Mapping], **kwargs) -> "InstitutionDirectory":
        return cls((InstitutionInfo.from_record(r) for r in records), **kwargs)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, **kwargs) -> "InstitutionDirectory":
        return cls.from_records(df.to_dict(orient='records'), **kwargs)

    @classmethod
    def from_submissions(cls, submissions: Iterable[Submission], **kwargs) -> "InstitutionDirectory":
        """
        Stand-in roster built from the submitters themselves.

        Only useful when no roster file is available: every submitter is
        expected, so the submission rate is always 100%.
        """
        entries = []
        for sub in submissions:
            entries.append(InstitutionInfo(
                code=sub.code,
                name=sub.name,
                region=normalize_region(sub.region) or sub.region,
                is_hub=sub.is_hub,
            ))
        return cls(entries, **kwargs)
