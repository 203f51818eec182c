"""
Tests for the cross-field consistency validator.

These tests verify that validation:
- Flags staffing above a nonzero allocation
- Flags subset counts larger than their parent totals
- Restricts short-term staffing to hub institutions
- Flags short-term totals that disagree between gender and duration
- Treats missing numbers as zero, never as a violation
"""

import pytest

from care_survey.directory import InstitutionDirectory, InstitutionInfo
from care_survey.submission import submission_from_record
from care_survey.validators import RULES, validate_batch, validate_submission
from care_survey.validators.consistency import NON_HUB_STAFF_MESSAGE, SHORT_TERM_STAFF_FIELDS


class TestCleanSubmissions:
    def test_consistent_record_has_no_violations(self, clean_record):
        assert validate_submission(clean_record) == {}

    def test_consistent_hub_record_has_no_violations(self, hub_record):
        assert validate_submission(hub_record) == {}

    def test_empty_draft_has_no_violations(self):
        """A blank form is the all-zero case, not a violation."""
        assert validate_submission({}) == {}

    def test_partial_draft_with_junk_cells(self):
        record = {'전담사회복지사_남': '-', '배정_전담사회복지사': '', '단기_남': None}
        assert validate_submission(record) == {}


class TestAllocationCeiling:
    def test_social_workers_over_allocation(self):
        """Six social workers against an allocation of five flags both gender fields."""
        # Arrange
        record = {'전담사회복지사_남': 3, '전담사회복지사_여': 3, '배정_전담사회복지사': 5}

        # Act
        errors = validate_submission(record)

        # Assert
        assert set(errors) == {'전담사회복지사_남', '전담사회복지사_여'}
        assert 'exceeds allocation of 5' in errors['전담사회복지사_남']
        assert errors['전담사회복지사_남'] == errors['전담사회복지사_여']

    def test_exactly_at_allocation_passes(self):
        record = {'전담사회복지사_남': 2, '전담사회복지사_여': 3, '배정_전담사회복지사': 5}
        assert validate_submission(record) == {}

    def test_zero_allocation_sets_no_ceiling(self):
        record = {'전담사회복지사_남': 30, '배정_전담사회복지사': 0}
        assert validate_submission(record) == {}

    def test_care_providers_over_allocation(self):
        errors = validate_submission({'생활지원사_여': 13, '배정_생활지원사': 12})

        assert set(errors) == {'생활지원사_남', '생활지원사_여'}
        assert 'exceeds allocation of 12' in errors['생활지원사_여']

    @pytest.mark.parametrize("allocated", [1, 3, 6, 10])
    @pytest.mark.parametrize("male,female", [(0, 0), (1, 2), (3, 3), (5, 6)])
    def test_flagged_iff_total_exceeds_allocation(self, male, female, allocated):
        record = {'전담사회복지사_남': male, '전담사회복지사_여': female,
                  '배정_전담사회복지사': allocated}

        errors = validate_submission(record)

        flagged = '전담사회복지사_남' in errors and '전담사회복지사_여' in errors
        assert flagged == (male + female > allocated)


class TestSubsetRules:
    def test_specialized_exceeds_general_focused(self):
        record = {'일반중점_남_일반': 2, '일반중점_남_중점': 1, '특화_남': 4}

        errors = validate_submission(record)

        assert list(errors) == ['특화_남']
        assert 'total 3' in errors['특화_남']

    def test_new_enrollee_checked_per_gender(self):
        record = {'일반중점_여_일반': 5, '신규대상자_여': 6, '신규대상자_남': 1}

        errors = validate_submission(record)

        assert set(errors) == {'신규대상자_여', '신규대상자_남'}

    def test_short_term_new_exceeds_short_term_population(self):
        record = {'단기_남': 2, '단기_기본_1개월': 2, '단기_당월신규_남': 3}

        errors = validate_submission(record)

        assert list(errors) == ['단기_당월신규_남']


class TestHubOnlyStaffing:
    def test_non_hub_with_short_term_staff_flags_all_four_fields(self):
        record = {'거점수행기관여부': False, '단기_전담인력_사회복지사_남': 2}

        errors = validate_submission(record)

        assert set(errors) == set(SHORT_TERM_STAFF_FIELDS)
        assert all(message == NON_HUB_STAFF_MESSAGE for message in errors.values())

    def test_hub_with_same_values_is_not_flagged(self):
        record = {'거점수행기관여부': True, '단기_전담인력_사회복지사_남': 2}
        assert validate_submission(record) == {}

    def test_directory_hub_flag_overrides_submission(self):
        directory = InstitutionDirectory([InstitutionInfo(code='B001', region='진주시', is_hub=True)])
        record = {'기관코드': 'B001', '거점수행기관여부': 'N', '단기_전담인력_돌봄제공인력_여': 1}

        assert validate_submission(record) != {}
        assert validate_submission(record, directory) == {}

    def test_unknown_code_falls_back_to_submission_flag(self, directory):
        record = {'기관코드': 'X404', '거점수행기관여부': 'Y', '단기_전담인력_돌봄제공인력_여': 1}
        assert validate_submission(record, directory) == {}


class TestShortTermTotals:
    def test_gender_and_duration_totals_disagree(self):
        """15 users by gender against 13 by duration flags all five fields."""
        record = {'단기_남': 10, '단기_여': 5, '단기_기본_1개월': 8, '단기_연장_2개월': 5, '단기_기타': 0}

        errors = validate_submission(record)

        assert set(errors) == {'단기_남', '단기_여', '단기_기본_1개월', '단기_연장_2개월', '단기_기타'}
        message = errors['단기_기타']
        assert '15' in message and '13' in message

    def test_matching_totals_pass(self):
        record = {'단기_남': 4, '단기_여': 4, '단기_기본_1개월': 5, '단기_연장_2개월': 2, '단기_기타': 1}
        assert validate_submission(record) == {}


class TestRuleOrdering:
    def test_first_message_for_a_field_wins(self):
        """단기_남 is flagged by the totals rule before the new-enrollee rule runs."""
        record = {'단기_남': 1, '단기_당월신규_남': 2}

        errors = validate_submission(record)

        assert errors['단기_남'].startswith('Short-term user total by gender')
        assert '단기_당월신규_남' in errors

    def test_rule_count(self):
        assert len(RULES) == 7


class TestIdempotence:
    def test_validating_twice_gives_identical_results(self):
        record = {'전담사회복지사_남': 3, '전담사회복지사_여': 3, '배정_전담사회복지사': 5,
                  '단기_남': 1, '단기_전담인력_사회복지사_여': 1}
        sub = submission_from_record(record)

        assert validate_submission(sub) == validate_submission(sub)
        assert validate_submission(record) == validate_submission(sub)


class TestValidateBatch:
    def test_only_flagged_institutions_reported(self, clean_record, hub_record):
        bad = {'기관코드': 'A002', '전담사회복지사_남': 3, '배정_전담사회복지사': 2}

        results = validate_batch([clean_record, hub_record, bad])

        assert list(results) == ['A002']
        assert set(results['A002']) == {'전담사회복지사_남', '전담사회복지사_여'}

    def test_correction_clears_errors_of_replaced_record(self):
        bad = {'기관코드': 'A002', '전담사회복지사_남': 3, '배정_전담사회복지사': 2}
        corrected = dict(bad, **{'전담사회복지사_남': 2})

        assert validate_batch([bad, corrected]) == {}
        assert list(validate_batch([corrected, bad])) == ['A002']

    def test_roster_hub_flag_applies_to_batch(self, directory, hub_record):
        record = dict(hub_record, **{'거점수행기관여부': 'N'})

        assert validate_batch([record], directory) == {}
        assert set(validate_batch([record])['B001']) == set(SHORT_TERM_STAFF_FIELDS)

    def test_records_without_code_skipped(self):
        bad = {'기관명': '코드누락', '전담사회복지사_남': 3, '배정_전담사회복지사': 2}

        assert validate_batch([bad]) == {}
