#!/usr/bin/env python3
"""
Tests for similarity scoring and the similarity report.

Scenario D: glyph 'a' is always misread as 'e'. Two unrelated a/e texts
then agree almost entirely by chance, so S_corr drops well below S_obs.
"""

import math
import sys
from pathlib import Path
import unittest
from unittest import mock

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from collation.alignment import ABSENT, AlignmentPair, build_character_alignment
from collation.config import ComparisonContext, Granularity, NormalizationOptions
from collation.confusion import ConfusionMatrix, to_probability_matrix
from collation.edit_script import EditOperation, generate_diffs
from collation.similarity import (
    build_similarity_report,
    character_case_changes,
    corrected_similarity,
    cosine_similarity,
    error_rates,
    jaccard_similarity,
    observed_similarity,
    weighted_similarity,
)
from collation.weights import build_weight_table

CHAR = Granularity.CHARACTER
WORD = Granularity.WORD

Eq = EditOperation.equal
Del = EditOperation.deletion
Ins = EditOperation.insertion
Sub = EditOperation.substitution


class TestObservedSimilarity(unittest.TestCase):

    def test_values(self):
        self.assertEqual(observed_similarity(0, 3, 3), 1.0)
        self.assertAlmostEqual(observed_similarity(1, 3, 3), 2 / 3)
        self.assertEqual(observed_similarity(0, 0, 0), 1.0)
        self.assertEqual(observed_similarity(3, 0, 3), 0.0)
        self.assertEqual(observed_similarity(2, 2, 0), 0.0)


class TestCorrectedSimilarity(unittest.TestCase):

    def test_chance_level_scores_zero(self):
        for b in (0.01, 0.25, 0.5, 0.9, 0.98, 0.99):
            self.assertEqual(corrected_similarity(b, b), 0.0, msg=b)

    def test_perfect_baseline(self):
        self.assertEqual(corrected_similarity(1.0, 1.0), 1.0)
        self.assertEqual(corrected_similarity(0.5, 1.0), 0.0)
        self.assertEqual(corrected_similarity(0.999, 1.0), 0.0)

    def test_rescaling(self):
        self.assertAlmostEqual(corrected_similarity(0.75, 0.5), 0.5)
        self.assertEqual(corrected_similarity(0.2, 0.5), 0.0)
        self.assertEqual(corrected_similarity(1.0, 0.5), 1.0)

    def test_high_baseline_branch(self):
        self.assertEqual(corrected_similarity(0.985, 0.99), 0.0)
        self.assertAlmostEqual(corrected_similarity(0.995, 0.99), 0.5)

    def test_invalid_inputs_are_nan(self):
        self.assertTrue(math.isnan(corrected_similarity(1.2, 0.5)))
        self.assertTrue(math.isnan(corrected_similarity(0.5, -0.1)))
        with self.assertLogs("collation.similarity", level="ERROR"):
            corrected_similarity(-1, 0.5)


class TestWeightedSimilarity(unittest.TestCase):

    def setUp(self):
        P = to_probability_matrix([[1, 0], [0, 1]])
        self.table = build_weight_table(P, {"a": 0.5, "b": 0.5}, ["a", "b"])

    def test_empty_alignment(self):
        self.assertEqual(weighted_similarity([], self.table), 0.0)

    def test_table_and_fallback(self):
        alignment = [
            AlignmentPair("a", "a"),     # table: 1
            AlignmentPair("x", "x"),     # unseen, equal: 1
            AlignmentPair("x", "y"),     # unseen, different: 0
            AlignmentPair("a", ABSENT),  # absent side: 0
        ]
        self.assertAlmostEqual(weighted_similarity(alignment, self.table), 0.5)


class TestAlignment(unittest.TestCase):

    def test_pairs(self):
        ops = [Eq("ab"), Sub("cd", "x"), Del("e"), Ins("f"), Sub("g", "hi")]
        self.assertEqual(build_character_alignment(ops), [
            ("a", "a"), ("b", "b"),
            ("c", "x"), ("d", ABSENT),
            ("e", ABSENT),
            (ABSENT, "f"),
            ("g", "h"), (ABSENT, "i"),
        ])

    def test_empty(self):
        self.assertEqual(build_character_alignment([]), [])


class TestErrorRates(unittest.TestCase):

    def test_character_rates(self):
        rates = error_rates(1, 3, 4, CHAR)
        self.assertAlmostEqual(rates["cer"], 100 / 3)
        self.assertAlmostEqual(rates["ned"], 25.0)
        self.assertIsNone(rates["wer"])

    def test_character_rates_with_empty_text1(self):
        rates = error_rates(3, 0, 3, CHAR)
        self.assertIsNone(rates["cer"])
        self.assertAlmostEqual(rates["ned"], 100.0)
        self.assertIsNone(error_rates(0, 0, 0, CHAR)["ned"])

    def test_word_rate(self):
        counts = {"substitutions": 1, "deletions": 1, "insertions": 0}
        self.assertAlmostEqual(error_rates(2, 4, 3, WORD, counts)["wer"], 50.0)
        self.assertEqual(error_rates(2, 0, 3, WORD, counts)["wer"], 0.0)


def test_case_changes():
    ops = [Sub("D", "d"), Sub("a", "B"), Sub("x", "X"), Sub("ab", "AB"), Eq("q")]
    changes = character_case_changes(ops)
    assert changes.total == 2
    assert changes.to_lower == 1 and changes.to_lower_details == {"D→d": 1}
    assert changes.to_upper == 1 and changes.to_upper_details == {"x→X": 1}


def test_word_set_similarities():
    options = NormalizationOptions()
    assert jaccard_similarity("the cat", "The dog", options) == pytest.approx(100 / 3)
    assert cosine_similarity("a a b", "a b", options) == pytest.approx(3 / math.sqrt(10) * 100)
    assert jaccard_similarity("", "", options) == 0.0
    assert cosine_similarity("word", "", options) == 0.0


# =============================================================================
# Report
# =============================================================================

def _report(text1, text2, granularity, context=None, options=None):
    options = options or NormalizationOptions()
    ops = generate_diffs(text1, text2, granularity, options, context)
    return build_similarity_report(text1, text2, ops, granularity, options, context)


def test_report_without_confusion_matrix():
    report = _report("cat", "cot", CHAR)
    assert report.distance == 1
    assert report.s_obs == pytest.approx(2 / 3)
    assert report.cer == pytest.approx(100 / 3)
    assert report.substitutions == 1
    assert report.s_baseline is None and report.s_corr is None and report.s_adj is None
    assert report.wer is None


def test_word_report():
    report = _report("the quick fox", "the slow fox", WORD)
    assert report.wer == pytest.approx(100 / 3)
    assert report.total_text1 == 3
    assert report.cer is None
    assert report.jaccard_similarity == pytest.approx(50.0)


def test_bias_correction_lowers_chance_agreement():
    matrix = ConfusionMatrix(("a", "e"), ((0, 10), (0, 10)))
    context = ComparisonContext(confusion_matrix=matrix)
    report = _report("aaee", "aeae", CHAR, context)

    assert report.s_obs == pytest.approx(0.5)
    assert report.s_baseline == pytest.approx(1.0)
    assert report.s_corr < report.s_obs
    assert report.s_corr == 0.0
    assert 0.0 <= report.s_adj <= 1.0
    assert report.glyph_error_rates == pytest.approx({"a": 1.0, "e": 0.0})


def test_bias_metrics_identical_texts():
    matrix = ConfusionMatrix(("a", "b"), ((9, 1), (1, 9)))
    report = _report("abab", "abab", CHAR, ComparisonContext(confusion_matrix=matrix))
    assert report.s_obs == 1.0
    assert report.s_corr == pytest.approx(1.0)
    assert 0.0 < report.s_adj <= 1.0


def test_bias_metrics_skipped_for_words():
    matrix = ConfusionMatrix(("a", "e"), ((0, 10), (0, 10)))
    report = _report("a e", "e a", WORD, ComparisonContext(confusion_matrix=matrix))
    assert report.s_baseline is None


def test_bias_failure_is_logged_and_skipped(caplog):
    matrix = ConfusionMatrix(("a", "e"), ((5, 5), (5, 5)))
    context = ComparisonContext(confusion_matrix=matrix)
    with mock.patch("collation.similarity.weight_table_for", side_effect=RuntimeError("boom")):
        report = _report("ae", "ea", CHAR, context)
    assert report.s_baseline is None and report.s_adj is None
    assert report.s_obs is not None
    assert "bias-aware metrics failed" in caplog.text


def test_empty_script_for_different_texts_is_scored_from_the_texts(caplog):
    options = NormalizationOptions()
    report = build_similarity_report("abcdef", "uvwxyz", [], CHAR, options)
    assert report.degraded is True
    assert report.distance == 6
    assert report.s_obs == 0.0
    assert report.cer == pytest.approx(100.0)
    assert "empty edit script" in caplog.text


def test_empty_script_for_different_word_texts():
    report = build_similarity_report("the quick fox", "the slow fox", [], WORD, NormalizationOptions())
    assert report.degraded is True
    assert report.distance == 1
    assert report.substitutions == 0
    assert report.wer == pytest.approx(100 / 3)


def test_empty_script_skips_weighted_similarity():
    matrix = ConfusionMatrix(("a", "e"), ((9, 1), (1, 9)))
    context = ComparisonContext(confusion_matrix=matrix)
    report = build_similarity_report("aaee", "eeaa", [], CHAR, NormalizationOptions(), context)
    assert report.degraded is True
    assert report.s_baseline is not None
    assert report.s_corr is not None
    assert report.s_adj is None


def test_empty_texts_are_not_degraded():
    report = build_similarity_report("", "", [], CHAR, NormalizationOptions())
    assert report.degraded is False
    assert report.s_obs == 1.0
