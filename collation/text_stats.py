"""
Descriptive statistics for a single text.

Word-level: frequency table, type-token ratio, average word length, word
length distribution, stopword share, and vocabulary overlap between two
texts. Character-level: capital letters, punctuation, per-character counts,
and which capitalized words one text has that the other does not.
"""

import logging
import re
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, Field

from .config import Granularity, NormalizationOptions
from .tokenize import normalize_and_tokenize
from .variant_forms import PUNCTUATION_RE

log = logging.getLogger("collation.text_stats")

_WORD_CLEANUP_RE = re.compile(r"[^\w\s']+|\s+$")
_CAPITAL_RE = re.compile(r"[A-Z]")

# Common English function words
STOPWORDS = frozenset({
    'a', 'about', 'above', 'after', 'again', 'against', 'all', 'also', 'am',
    'an', 'and', 'any', 'are', 'as', 'at', 'be', 'because', 'been', 'before',
    'being', 'below', 'between', 'both', 'but', 'by', 'can', 'could', 'did',
    'do', 'does', 'doing', 'down', 'during', 'each', 'either', 'few', 'for',
    'from', 'further', 'had', 'has', 'have', 'having', 'he', 'her', 'here',
    'hers', 'herself', 'him', 'himself', 'his', 'how', 'i', 'if', 'in',
    'into', 'is', 'it', 'its', 'itself', 'just', 'may', 'me', 'might',
    'more', 'most', 'must', 'my', 'myself', 'neither', 'no', 'nor', 'not',
    'now', 'of', 'off', 'on', 'once', 'only', 'or', 'other', 'ought', 'our',
    'ours', 'ourselves', 'out', 'over', 'own', 'same', 'shall', 'she',
    'should', 'so', 'some', 'such', 'than', 'that', 'the', 'their',
    'theirs', 'them', 'themselves', 'then', 'there', 'these', 'they',
    'this', 'those', 'through', 'to', 'too', 'under', 'until', 'up', 'upon',
    'very', 'was', 'we', 'were', 'what', 'when', 'where', 'which', 'while',
    'who', 'whom', 'why', 'will', 'with', 'would', 'yet', 'you', 'your',
    'yours', 'yourself', 'yourselves',
})


# =============================================================================
# WORD STATISTICS
# =============================================================================

def word_metric_options(options: NormalizationOptions) -> NormalizationOptions:
    """Options for word statistics: only the capitalization and punctuation flags carry over."""
    return NormalizationOptions(
        keep_capitalization=options.keep_capitalization,
        keep_punctuation=options.keep_punctuation,
    )


def word_frequencies(text: str, options: NormalizationOptions) -> Dict[str, int]:
    """Cleaned word counts (apostrophes kept), lowercased unless capitalization is kept."""
    freq: Counter = Counter()
    for token in normalize_and_tokenize(text, Granularity.WORD, options):
        word = _WORD_CLEANUP_RE.sub("", token).strip()
        if not options.keep_capitalization:
            word = word.lower()
        if word:
            freq[word] += 1
    return dict(freq)


def type_token_ratio(freq: Mapping[str, int], total_words: int) -> float:
    """Distinct words per word, as a percentage; 0 for a text with no words."""
    if not total_words:
        return 0.0
    return len(freq) / total_words * 100


def average_word_length(freq: Mapping[str, int]) -> float:
    total_words = sum(freq.values())
    if not total_words:
        return 0.0
    return sum(len(word) * n for word, n in freq.items()) / total_words


def word_length_distribution(freq: Mapping[str, int]) -> Dict[int, int]:
    distribution: Dict[int, int] = {}
    for word, n in freq.items():
        distribution[len(word)] = distribution.get(len(word), 0) + n
    return dict(sorted(distribution.items()))


def stopword_percentage(freq: Mapping[str, int], stopwords: Optional[Iterable[str]] = None) -> float:
    """Share of word occurrences that are stopwords (case-insensitive), as a percentage."""
    stopwords = STOPWORDS if stopwords is None else frozenset(stopwords)
    total = sum(freq.values())
    if not total:
        return 0.0
    hits = sum(n for word, n in freq.items() if word.lower() in stopwords)
    return hits / total * 100


def vocabulary_overlap(freq1: Mapping[str, int], freq2: Mapping[str, int]) -> float:
    """
    Shared distinct words over the mean vocabulary size, as a percentage.

    0 when both texts have no words.
    """
    vocab1, vocab2 = set(freq1), set(freq2)
    average_unique = (len(vocab1) + len(vocab2)) / 2
    if not average_unique:
        return 0.0
    return len(vocab1 & vocab2) / average_unique * 100


class WordStatistics(BaseModel):
    """Word-level profile of one text."""
    type_token_ratio: float = 0.0
    average_word_length: float = 0.0
    stopword_percentage: float = 0.0
    word_length_distribution: Dict[int, int] = Field(default_factory=dict)
    word_frequencies: Dict[str, int] = Field(default_factory=dict)


def word_statistics(text: str, total_words: int, options: NormalizationOptions) -> WordStatistics:
    freq = word_frequencies(text, word_metric_options(options))
    return WordStatistics(
        type_token_ratio=type_token_ratio(freq, total_words),
        average_word_length=average_word_length(freq),
        stopword_percentage=stopword_percentage(freq),
        word_length_distribution=word_length_distribution(freq),
        word_frequencies=freq,
    )


# =============================================================================
# CHARACTER STATISTICS
# =============================================================================

def count_capitalizations(text: str) -> int:
    """Number of ASCII capital letters."""
    return len(_CAPITAL_RE.findall(text or ""))


def count_punctuation(text: str) -> Dict[str, int]:
    return dict(Counter(PUNCTUATION_RE.findall(text or "")))


def count_characters(text: str) -> Dict[str, int]:
    return dict(Counter(text or ""))


class CharacterStatistics(BaseModel):
    """Character-level profile of one raw text."""
    capitalizations: int = 0
    punctuation_total: int = 0
    punctuation_breakdown: Dict[str, int] = Field(default_factory=dict)
    character_counts: Dict[str, int] = Field(default_factory=dict)


def character_statistics(text: str) -> CharacterStatistics:
    breakdown = count_punctuation(text)
    return CharacterStatistics(
        capitalizations=count_capitalizations(text),
        punctuation_total=sum(breakdown.values()),
        punctuation_breakdown=breakdown,
        character_counts=count_characters(text),
    )


class CapitalizationChanges(BaseModel):
    """Capitalized words only in text1 (removed), only in text2 (added), or in both."""
    removed: int = 0
    added: int = 0
    unchanged: int = 0
    removed_words: Dict[str, int] = Field(default_factory=dict)
    added_words: Dict[str, int] = Field(default_factory=dict)
    unchanged_words: Dict[str, int] = Field(default_factory=dict)


def capitalization_changes(
    text1: str,
    text2: str,
    options: NormalizationOptions,
) -> CapitalizationChanges:
    """
    Compare the multisets of capitalized words in two texts.

    Words are tokenized with punctuation stripped and whitespace excluded;
    a word counts when it contains an ASCII capital. For each word the
    shared count is "unchanged", the surplus in text1 "removed" and the
    surplus in text2 "added".
    """
    word_options = replace(options, keep_punctuation=False, keep_whitespace=False,
                           collapse_whitespace=False)
    caps1 = Counter(w for w in normalize_and_tokenize(text1, Granularity.WORD, word_options)
                    if _CAPITAL_RE.search(w))
    caps2 = Counter(w for w in normalize_and_tokenize(text2, Granularity.WORD, word_options)
                    if _CAPITAL_RE.search(w))

    changes = CapitalizationChanges()
    for word in sorted(set(caps1) | set(caps2)):
        shared = min(caps1[word], caps2[word])
        if caps1[word] > shared:
            changes.removed += caps1[word] - shared
            changes.removed_words[word] = caps1[word] - shared
        if caps2[word] > shared:
            changes.added += caps2[word] - shared
            changes.added_words[word] = caps2[word] - shared
        if shared:
            changes.unchanged += shared
            changes.unchanged_words[word] = shared
    log.debug("capitalization_changes: removed=%d added=%d unchanged=%d",
              changes.removed, changes.added, changes.unchanged)
    return changes
