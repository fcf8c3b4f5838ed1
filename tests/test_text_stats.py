#!/usr/bin/env python3
"""
Tests for per-text descriptive statistics.
"""

import sys
from pathlib import Path
import unittest

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from collation.config import NormalizationOptions
from collation.text_stats import (
    average_word_length,
    capitalization_changes,
    character_statistics,
    count_capitalizations,
    count_characters,
    count_punctuation,
    stopword_percentage,
    type_token_ratio,
    vocabulary_overlap,
    word_frequencies,
    word_length_distribution,
    word_statistics,
)


class TestWordFrequencies(unittest.TestCase):

    def test_punctuation_cleaned_apostrophes_kept(self):
        freq = word_frequencies("Don't stop, don't!", NormalizationOptions(keep_capitalization=False))
        self.assertEqual(freq, {"don't": 2, "stop": 1})

    def test_capitalization_kept(self):
        freq = word_frequencies("The the", NormalizationOptions())
        self.assertEqual(freq, {"The": 1, "the": 1})

    def test_empty(self):
        self.assertEqual(word_frequencies("", NormalizationOptions()), {})


class TestWordMeasures(unittest.TestCase):

    def setUp(self):
        self.freq = {"the": 2, "cat": 1, "sat": 1, "on": 1, "mat": 1}

    def test_type_token_ratio(self):
        self.assertAlmostEqual(type_token_ratio(self.freq, 6), 5 / 6 * 100)
        self.assertEqual(type_token_ratio({}, 0), 0.0)

    def test_average_word_length(self):
        self.assertAlmostEqual(average_word_length(self.freq), 17 / 6)
        self.assertEqual(average_word_length({}), 0.0)

    def test_word_length_distribution(self):
        self.assertEqual(word_length_distribution(self.freq), {2: 1, 3: 5})

    def test_stopwords(self):
        # "the" x2 and "on"
        self.assertAlmostEqual(stopword_percentage(self.freq), 50.0)
        self.assertAlmostEqual(stopword_percentage({"The": 1, "Cat": 1}), 50.0)
        self.assertAlmostEqual(stopword_percentage(self.freq, stopwords={"cat"}), 100 / 6)
        self.assertEqual(stopword_percentage({}), 0.0)

    def test_vocabulary_overlap(self):
        self.assertAlmostEqual(vocabulary_overlap({"a": 1, "b": 3}, {"b": 1, "c": 1}), 50.0)
        self.assertEqual(vocabulary_overlap({}, {}), 0.0)
        self.assertEqual(vocabulary_overlap({"a": 1}, {}), 0.0)


def test_word_statistics_bundle():
    stats = word_statistics("the cat, the hat", 4, NormalizationOptions(keep_punctuation=False))
    assert stats.word_frequencies == {"the": 2, "cat": 1, "hat": 1}
    assert stats.type_token_ratio == pytest.approx(75.0)
    assert stats.average_word_length == pytest.approx(3.0)
    assert stats.word_length_distribution == {3: 4}
    assert stats.stopword_percentage == pytest.approx(50.0)


def test_character_counts():
    text = "Ab, c! Æ"
    assert count_capitalizations(text) == 1
    assert count_punctuation(text) == {",": 1, "!": 1}
    assert count_characters("aab") == {"a": 2, "b": 1}
    assert count_punctuation("") == {}

    stats = character_statistics(text)
    assert stats.capitalizations == 1
    assert stats.punctuation_total == 2
    assert stats.character_counts[" "] == 2


def test_capitalization_changes():
    changes = capitalization_changes(
        "London and Paris, London.",
        "london and Paris Rome",
        NormalizationOptions(),
    )
    assert changes.removed == 2 and changes.removed_words == {"London": 2}
    assert changes.added == 1 and changes.added_words == {"Rome": 1}
    assert changes.unchanged == 1 and changes.unchanged_words == {"Paris": 1}


def test_capitalization_changes_when_case_is_folded():
    changes = capitalization_changes("London", "Paris", NormalizationOptions(keep_capitalization=False))
    assert changes.removed == 0 and changes.added == 0 and changes.unchanged == 0
