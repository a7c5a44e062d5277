"""Tests for the similarity scorer and its string/number helpers."""

from datetime import date

import pytest

from txndedup.config import DedupSettings
from txndedup.matching.normalize import normalize_description, parse_record_date
from txndedup.matching.scorer import (
    SimilarityScorer,
    description_similarity,
    levenshtein_distance,
    levenshtein_similarity,
)
from tests.conftest import make_record


@pytest.fixture
def scorer():
    return SimilarityScorer()


# ── normalize_description ─────────────────────────────────


class TestNormalizeDescription:
    def test_lowercases_and_strips_punctuation(self):
        assert normalize_description("Salary Credit - Monthly") == "salary credit monthly"

    def test_punctuation_between_words_is_removed_not_spaced(self):
        assert normalize_description("Grocery-Store") == "grocerystore"

    def test_collapses_and_trims_whitespace(self):
        assert normalize_description("  Coffee \t\n  Shop  ") == "coffee shop"

    def test_keeps_digits(self):
        assert normalize_description("UPI/1234 Ref#99") == "upi1234 ref99"

    def test_none_and_non_strings_become_empty(self):
        assert normalize_description(None) == ""
        assert normalize_description(42) == ""

    def test_only_punctuation_becomes_empty(self):
        assert normalize_description("***") == ""


class TestParseRecordDate:
    def test_iso_string(self):
        assert parse_record_date("2024-01-15") == date(2024, 1, 15)

    def test_iso_timestamp_drops_time(self):
        assert parse_record_date("2024-01-15T23:59:00") == date(2024, 1, 15)

    def test_date_object_passes_through(self):
        assert parse_record_date(date(2024, 1, 15)) == date(2024, 1, 15)

    def test_garbage_is_none(self):
        assert parse_record_date("15/01/2024") is None
        assert parse_record_date("") is None
        assert parse_record_date(None) is None


# ── Levenshtein ───────────────────────────────────────────


class TestLevenshtein:
    def test_classic_examples(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("flaw", "lawn") == 2

    def test_identical(self):
        assert levenshtein_distance("coffee", "coffee") == 0

    def test_against_empty(self):
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3

    def test_symmetric(self):
        assert levenshtein_distance("grocery", "gross") == levenshtein_distance("gross", "grocery")

    def test_similarity_ratio(self):
        assert levenshtein_similarity("coffee bar", "coffee baz") == pytest.approx(0.9)

    def test_similarity_of_two_empty_strings(self):
        assert levenshtein_similarity("", "") == 1.0


class TestDescriptionSimilarity:
    def test_identical(self):
        assert description_similarity("coffee shop", "coffee shop") == 1.0

    def test_substring(self):
        assert description_similarity("grocery store", "grocery store purchase") == 0.8
        assert description_similarity("grocery store purchase", "grocery store") == 0.8

    def test_empty_gets_no_credit(self):
        assert description_similarity("", "") == 0.0
        assert description_similarity("coffee", "") == 0.0
        assert description_similarity("", "coffee") == 0.0

    def test_falls_back_to_edit_distance(self):
        assert description_similarity("coffee bar", "coffee baz") == pytest.approx(0.9)


# ── Sub-scores ────────────────────────────────────────────


class TestDateSimilarity:
    @pytest.mark.parametrize("days,expected", [
        (0, 1.0), (1, 0.8), (2, 0.5), (7, 0.5), (8, 0.2), (30, 0.2), (31, 0.0),
    ])
    def test_bands(self, scorer, days, expected):
        a = date(2024, 1, 1)
        b = date.fromordinal(a.toordinal() + days)
        assert scorer.date_similarity(a, b) == expected

    def test_tolerance_is_configurable(self):
        wide = SimilarityScorer(DedupSettings(date_tolerance_days=3))
        assert wide.date_similarity(date(2024, 1, 1), date(2024, 1, 4)) == 0.8

    def test_unreadable_date_scores_zero(self, scorer):
        assert scorer.date_similarity(None, date(2024, 1, 1)) == 0.0


class TestAmountSimilarity:
    def test_exact(self, scorer):
        assert scorer.amount_similarity(1000.0, 1000.0) == 1.0

    def test_both_zero(self, scorer):
        assert scorer.amount_similarity(0.0, 0.0) == 1.0

    def test_within_tight_tolerance(self, scorer):
        assert scorer.amount_similarity(1000.0, 1000.5) == 0.95

    def test_within_five_percent(self, scorer):
        assert scorer.amount_similarity(1000.0, 1050.0) == 0.8

    def test_within_ten_percent(self, scorer):
        assert scorer.amount_similarity(1000.0, 1080.0) == 0.5

    def test_beyond_ten_percent(self, scorer):
        assert scorer.amount_similarity(1000.0, 1200.0) == 0.0

    def test_negative_amounts(self, scorer):
        assert scorer.amount_similarity(-1000.0, -1050.0) == 0.8

    def test_opposite_signs_same_magnitude(self, scorer):
        assert scorer.amount_similarity(50.0, -50.0) == 0.0


# ── score() ───────────────────────────────────────────────


class TestScore:
    def test_exact_match_is_100(self, scorer):
        assert scorer.score(make_record(), make_record()) == 100

    def test_reflexive(self, scorer):
        r = make_record(id="a")
        assert scorer.score(r, r) == 100

    def test_exact_match_ignores_case_and_punctuation(self, scorer):
        a = make_record(description="Grocery Store Purchase")
        b = make_record(description="GROCERY STORE, PURCHASE!")
        assert scorer.score(a, b) == 100

    def test_exact_match_ignores_category_and_id(self, scorer):
        a = make_record(category="groceries", id="1")
        b = make_record(category="household", id="2")
        assert scorer.score(a, b) == 100

    def test_date_object_and_string_match(self, scorer):
        a = make_record(date="2024-01-15")
        b = make_record(date=date(2024, 1, 15))
        assert scorer.score(a, b) == 100

    def test_empty_descriptions_still_exact_match(self, scorer):
        a = make_record(description="")
        b = make_record(description=None)
        assert scorer.score(a, b) == 100

    def test_empty_descriptions_get_no_description_credit(self, scorer):
        a = make_record(description="", type="expense", category="a")
        b = make_record(description="", type="income", category="b")
        # date 35 + amount 45, nothing else
        assert scorer.score(a, b) == 80

    def test_weighted_sum_rounds_half_up(self, scorer):
        existing = make_record(category=None)
        candidate = make_record(
            date="2024-01-17", amount=1050.0, description="Grocery Store", category=None,
        )
        # 17.5 + 36 + 12 + 2.5 + 2.5 = 70.5
        assert scorer.score(existing, candidate) == 71

    def test_levenshtein_branch(self, scorer):
        a = make_record(description="coffee bar", category="dining")
        b = make_record(description="coffee baz", category="food")
        # 35 + 45 + 13.5 + 2.5
        assert scorer.score(a, b) == 96

    def test_custom_weights(self):
        from txndedup.config import Weights
        scorer = SimilarityScorer(DedupSettings(
            weights=Weights(date=50, amount=50, description=0, categorical=0),
        ))
        a = make_record(description="one", type="x")
        b = make_record(description="two", type="y")
        assert scorer.score(a, b) == 100


class TestScoreProperties:
    RECORDS = [
        make_record(),
        make_record(date="2024-01-16"),
        make_record(amount=1000.5),
        make_record(description="Grocery Store"),
        make_record(type="income", category="salary"),
        make_record(date="2024-02-20", amount=-42.0, description="Refund"),
        make_record(description=""),
        make_record(date="not-a-date"),
    ]

    def test_symmetric(self, scorer):
        for a in self.RECORDS:
            for b in self.RECORDS:
                assert scorer.score(a, b) == scorer.score(b, a)

    def test_in_range(self, scorer):
        for a in self.RECORDS:
            for b in self.RECORDS:
                assert 0 <= scorer.score(a, b) <= 100

    @pytest.mark.parametrize("change", [
        {"date": "2024-01-16"},
        {"amount": 1000.5},
        {"description": "Grocery Store Purchases"},
        {"type": "income"},
    ])
    def test_single_field_change_drops_below_100(self, scorer, change):
        assert scorer.score(make_record(), make_record(**change)) < 100

    def test_cross_day_cap(self, scorer):
        a = make_record(date="2024-01-15")
        b = make_record(date="2024-01-16")
        # uncapped would be 28 + 45 + 15 + 5 = 93
        assert scorer.score(a, b) == 85

    @pytest.mark.parametrize("other_date", ["2024-01-17", "2024-01-20", "2024-03-01"])
    def test_dates_more_than_a_day_apart_never_exceed_cap(self, scorer, other_date):
        assert scorer.score(make_record(), make_record(date=other_date)) <= 85

    def test_cap_is_configurable(self):
        scorer = SimilarityScorer(DedupSettings(cross_day_cap=80))
        assert scorer.score(make_record(), make_record(date="2024-01-16")) == 80


class TestScoreInvalidInput:
    def test_invalid_date_scores_zero_for_date(self, scorer):
        a = make_record(date="not-a-date")
        b = make_record()
        # amount 45 + description 15 + categorical 5
        assert scorer.score(a, b) == 65

    def test_invalid_date_is_never_exact(self, scorer):
        r = make_record(date="not-a-date")
        assert scorer.score(r, r) == 65

    def test_malformed_description_treated_as_empty(self, scorer):
        a = make_record(description=12345, type="x")
        b = make_record(description="Grocery Store Purchase", type="y")
        assert scorer.score(a, b) == 83  # 35 + 45 + 0 + 2.5

    def test_non_numeric_amount_raises(self, scorer):
        with pytest.raises(ValueError):
            scorer.score(make_record(amount="abc"), make_record())
