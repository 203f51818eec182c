"""
Tests for survey record parsing and zero-defaulting.

A submission is parsed once at the ingestion boundary; blanks, dashes,
NaN cells and junk text all become 0 so rules never see a missing value.
"""

import math

import pandas as pd
import pytest

from care_survey.submission import (
    COUNT_FIELDS,
    Submission,
    assignment_changes,
    submission_from_record,
    submission_to_record,
    submissions_from_frame,
    submissions_to_frame,
)
from care_survey.utils import parse_count, parse_flag, parse_optional_count, round_half_up


class TestParseCount:
    """Count cells collapse to a non-negative integer."""

    @pytest.mark.parametrize("raw,expected", [
        (3, 3),
        (3.0, 3),
        ("12", 12),
        (" 7 ", 7),
        ("1,200", 1200),
        (True, 1),
    ])
    def test_parses_usable_values(self, raw, expected):
        assert parse_count(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "-", "*", "N/A", "abc", float('nan'), math.inf, -4, "-4"])
    def test_unusable_values_become_zero(self, raw):
        assert parse_count(raw) == 0

    def test_custom_default(self):
        assert parse_count(None, default=-1) == -1

    def test_optional_count_keeps_blank_as_none(self):
        assert parse_optional_count(None) is None
        assert parse_optional_count("") is None
        assert parse_optional_count("2") == 2


class TestParseFlag:
    @pytest.mark.parametrize("raw", [True, 1, "Y", "y", "예", "유", "해당", "true"])
    def test_truthy_spellings(self, raw):
        assert parse_flag(raw) is True

    @pytest.mark.parametrize("raw", [False, 0, "N", "아니오", "", None, float('nan')])
    def test_everything_else_is_false(self, raw):
        assert parse_flag(raw) is False


class TestRoundHalfUp:
    """Halves round up, not to even."""

    def test_half_rounds_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(0.5) == 1

    def test_one_decimal(self):
        assert round_half_up(12.25, 1) == 12.3
        assert round_half_up(10.0, 1) == 10.0

    def test_integer_result_type(self):
        assert isinstance(round_half_up(66.666), int)


class TestSubmissionFromRecord:
    def test_empty_record_is_all_zero(self):
        sub = submission_from_record({})

        assert all(value == 0 for value in sub.counts().values())
        assert sub.is_hub is False
        assert sub.code == ""

    def test_korean_columns_map_to_attributes(self, clean_record):
        sub = submission_from_record(clean_record)

        assert sub.code == 'A001'
        assert sub.region == '창원시'
        assert sub.social_worker_m == 1
        assert sub.allocated_care_providers == 20

    def test_english_keys_accepted(self):
        sub = submission_from_record({'code': 'X1', 'social_worker_f': '2', 'is_hub': 'Y'})

        assert sub.code == 'X1'
        assert sub.social_worker_f == 2
        assert sub.is_hub is True

    def test_malformed_counts_are_zeroed(self):
        sub = submission_from_record({'전담사회복지사_남': '-', '전담사회복지사_여': 'n/a',
                                      '생활지원사_남': None, '생활지원사_여': float('nan')})

        assert sub.social_workers == 0
        assert sub.care_providers == 0

    def test_unknown_keys_ignored(self):
        sub = submission_from_record({'기관코드': 'A001', '메모': '비고 없음'})
        assert sub.code == 'A001'

    def test_existing_submission_returned_unchanged(self):
        sub = Submission(code='A001', social_worker_m=2)
        assert submission_from_record(sub) is sub


class TestDerivedTotals:
    def test_users_served_is_general_plus_focused(self, clean_record):
        sub = submission_from_record(clean_record)

        assert sub.general_focused_m == 40
        assert sub.general_focused_f == 210
        assert sub.users_served == 250

    def test_short_term_totals(self, hub_record):
        sub = submission_from_record(hub_record)

        assert sub.short_term_by_gender == 8
        assert sub.short_term_by_duration == 8
        assert sub.short_term_staff == 3

    def test_gendered_exits_preferred_over_legacy_column(self):
        sub = Submission(short_term_expired=9, short_term_expired_m=1, short_term_expired_f=2)
        assert sub.short_term_expired_total == 3

    def test_legacy_exit_column_used_when_no_gendered_values(self):
        sub = Submission(short_term_withdrawn=4)
        assert sub.short_term_withdrawn_total == 4


class TestRecordRoundTrip:
    def test_to_record_uses_sheet_columns(self, clean_record):
        record = submission_to_record(submission_from_record(clean_record))

        assert record['기관코드'] == 'A001'
        assert record['거점수행기관여부'] is False
        assert set(COUNT_FIELDS).issubset(record)

    def test_frame_conversion_treats_nan_as_blank(self, clean_record):
        df = pd.DataFrame([clean_record, {'기관코드': 'A002'}])

        subs = submissions_from_frame(df)

        assert subs[1].code == 'A002'
        assert subs[1].social_workers == 0
        assert subs[0] == submission_from_record(clean_record)

    def test_to_frame_has_one_row_per_submission(self, clean_record, hub_record):
        df = submissions_to_frame(submissions_from_frame(pd.DataFrame([clean_record, hub_record])))
        assert list(df['기관코드']) == ['A001', 'B001']


class TestAssignmentChanges:
    def test_change_marker_produces_record(self):
        subs = [
            {'기관코드': 'A001', '기관명': '창원노인복지센터', '변경여부': '유',
             '변경_생활지원사': 2, '변경일자': '2025-03-01'},
            {'기관코드': 'A002', '변경여부': '무'},
        ]

        changes = assignment_changes(subs)

        assert len(changes) == 1
        assert changes[0].code == 'A001'
        assert changes[0].changed_care_providers == 2
        assert changes[0].changed_users is None
        assert changes[0].change_date == '2025-03-01'

    def test_change_values_without_marker_still_reported(self):
        sub = submission_from_record({'기관코드': 'A003', '변경_이용자': 5})
        assert sub.has_assignment_change
        assert sub.assignment_change.changed_users == 5

    def test_no_change(self, clean_record):
        assert submission_from_record(clean_record).assignment_change is None
