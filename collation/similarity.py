"""
Similarity scoring.

Plain metrics (edit distance, CER, NED, WER, Jaccard, cosine) plus the
bias-aware trio computed from a confusion matrix:

- S_obs:      1 - distance / max(len1, len2)
- S_corr:     S_obs rescaled against the chance baseline S_baseline
- S_adj:      mean same-true-glyph probability over the character alignment

Bias-aware metrics are only computed at character granularity and only when
the comparison context carries a confusion matrix.
"""

import logging
import math
from dataclasses import replace
from typing import Dict, Optional, Sequence

import numpy as np
from Levenshtein import distance as levenshtein_distance
from pydantic import BaseModel, Field

from .alignment import AlignmentPair, build_character_alignment
from .baseline import glyph_frequencies, overall_baseline_agreement, per_glyph_baseline_agreement
from .config import ComparisonContext, Granularity, NormalizationOptions
from .confusion import glyph_error_rates
from .edit_script import EditOperation, OpKind, compute_distance
from .normalization import normalize
from .text_stats import (
    CapitalizationChanges,
    CharacterStatistics,
    WordStatistics,
    capitalization_changes,
    character_statistics,
    vocabulary_overlap,
    word_frequencies,
    word_metric_options,
    word_statistics,
)
from .tokenize import normalize_and_tokenize, word_tokens_for_metrics
from .weights import WeightTable, weight_table_for

log = logging.getLogger("collation.similarity")

EPSILON = 1e-9
HIGH_BASELINE_THRESHOLD = 0.98


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


# =============================================================================
# CORE SIMILARITIES
# =============================================================================

def observed_similarity(distance: int, len1: int, len2: int) -> float:
    """1 - distance / max(len1, len2); 1 when both are empty, 0 when one is."""
    longest = max(len1, len2)
    if longest == 0:
        return 1.0
    if len1 == 0 or len2 == 0:
        return 0.0
    return 1.0 - distance / longest


def corrected_similarity(s_obs: float, s_baseline: float) -> float:
    """
    Rescale S_obs so that chance agreement scores 0 and identity scores 1.

    Returns NaN when either input is outside [0, 1]; that points at a bug
    upstream, so it is logged rather than clamped.
    """
    if not (0.0 <= s_obs <= 1.0) or not (0.0 <= s_baseline <= 1.0):
        log.error("corrected_similarity: inputs must be in [0, 1] (s_obs=%r, s_baseline=%r)",
                  s_obs, s_baseline)
        return math.nan

    if abs(1.0 - s_baseline) < EPSILON:
        return 1.0 if abs(1.0 - s_obs) < EPSILON else 0.0

    if s_baseline > HIGH_BASELINE_THRESHOLD:
        if s_obs < s_baseline:
            return 0.0
        return clamp01((s_obs - s_baseline) / (1.0 - s_baseline))

    return clamp01((s_obs - s_baseline) / (1.0 - s_baseline))


def weighted_similarity(alignment: Sequence[AlignmentPair], weight_table: WeightTable) -> float:
    """
    Mean of w(x, y) over the alignment.

    Pairs the table does not cover (an ABSENT side or an unseen glyph)
    score 1 if the glyphs are equal and 0 otherwise. Empty alignment -> 0.
    """
    if not alignment:
        return 0.0
    total = 0.0
    for x, y in alignment:
        weight = weight_table.get(x, y) if x is not None and y is not None else None
        if weight is None:
            weight = 1.0 if x == y else 0.0
        total += weight
    return total / len(alignment)


# =============================================================================
# WORD-LEVEL METRICS
# =============================================================================

def jaccard_similarity(text1: str, text2: str, options: NormalizationOptions) -> float:
    """|A ∩ B| / |A ∪ B| over lowercased word sets, as a percentage."""
    options = word_metric_options(options)
    set1 = {w.lower() for w in normalize_and_tokenize(text1, Granularity.WORD, options)}
    set2 = {w.lower() for w in normalize_and_tokenize(text2, Granularity.WORD, options)}
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union) * 100


def cosine_similarity(text1: str, text2: str, options: NormalizationOptions) -> float:
    """Cosine of the word-frequency vectors, as a percentage."""
    options = word_metric_options(options)
    freq1 = word_frequencies(text1, options)
    freq2 = word_frequencies(text2, options)
    vocabulary = sorted(set(freq1) | set(freq2))

    a_arr = np.array([freq1.get(w, 0) for w in vocabulary], dtype=float)
    b_arr = np.array([freq2.get(w, 0) for w in vocabulary], dtype=float)
    norm_a = np.linalg.norm(a_arr)
    norm_b = np.linalg.norm(b_arr)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a_arr, b_arr) / (norm_a * norm_b)) * 100


# =============================================================================
# CHARACTER-LEVEL METRICS
# =============================================================================

class CaseChanges(BaseModel):
    to_lower: int = 0
    to_upper: int = 0
    total: int = 0
    to_lower_details: Dict[str, int] = Field(default_factory=dict)
    to_upper_details: Dict[str, int] = Field(default_factory=dict)


def character_case_changes(ops: Sequence[EditOperation]) -> CaseChanges:
    """Single-character substitutions that differ only in case ("D→d")."""
    changes = CaseChanges()
    for op in ops:
        if op.kind != OpKind.SUBSTITUTION:
            continue
        a, b = op.text1, op.text2
        if len(a) != 1 or len(b) != 1 or a == b or a.lower() != b.lower():
            continue
        changes.total += 1
        key = f"{a}→{b}"
        if a.isupper() and b.islower():
            changes.to_lower += 1
            changes.to_lower_details[key] = changes.to_lower_details.get(key, 0) + 1
        elif a.islower() and b.isupper():
            changes.to_upper += 1
            changes.to_upper_details[key] = changes.to_upper_details.get(key, 0) + 1
    return changes


def error_rates(
    distance: int,
    len1: int,
    len2: int,
    granularity: Granularity,
    edit_counts: Optional[Dict[str, int]] = None,
) -> Dict[str, Optional[float]]:
    """
    CER / NED for characters, WER for words (percentages).

    CER is None when text1 is empty and NED when both are; WER is 0 when
    text1 has no words. Without edit_counts WER falls back to distance.
    """
    if granularity == Granularity.CHARACTER:
        longest = max(len1, len2)
        return {
            "cer": distance / len1 * 100 if len1 else None,
            "ned": distance / longest * 100 if longest else None,
            "wer": None,
        }
    if edit_counts is None:
        edits = distance
    else:
        edits = (edit_counts.get("substitutions", 0) + edit_counts.get("deletions", 0)
                 + edit_counts.get("insertions", 0))
    return {
        "cer": None,
        "ned": None,
        "wer": edits / len1 * 100 if len1 else 0.0,
    }


def count_edits(ops: Sequence[EditOperation]) -> Dict[str, int]:
    counts = {"substitutions": 0, "deletions": 0, "insertions": 0}
    for op in ops:
        if op.kind == OpKind.SUBSTITUTION:
            counts["substitutions"] += 1
        elif op.kind == OpKind.DELETION:
            counts["deletions"] += 1
        elif op.kind == OpKind.INSERTION:
            counts["insertions"] += 1
    return counts


# =============================================================================
# REPORT
# =============================================================================

class SimilarityReport(BaseModel):
    """
    Scores for one comparison.

    total_text1 / total_text2 count characters or words depending on
    granularity. Bias-aware fields stay None when they were not computed.
    degraded is set when the diff failed or timed out: distance and the
    rates then come straight from the normalized texts and the edit counts
    are unknown (left at 0).
    """
    granularity: Granularity
    distance: int
    total_text1: int
    total_text2: int
    s_obs: float
    degraded: bool = False
    s_baseline: Optional[float] = None
    s_corr: Optional[float] = None
    s_adj: Optional[float] = None
    glyph_error_rates: Optional[Dict[str, float]] = None
    cer: Optional[float] = None
    ned: Optional[float] = None
    wer: Optional[float] = None
    substitutions: int = 0
    deletions: int = 0
    insertions: int = 0

    # word granularity
    jaccard_similarity: Optional[float] = None
    cosine_similarity: Optional[float] = None
    vocabulary_overlap: Optional[float] = None
    word_stats_text1: Optional[WordStatistics] = None
    word_stats_text2: Optional[WordStatistics] = None

    # character granularity
    case_changes: Optional[CaseChanges] = None
    char_stats_text1: Optional[CharacterStatistics] = None
    char_stats_text2: Optional[CharacterStatistics] = None
    capitalization_changes: Optional[CapitalizationChanges] = None


def _bias_metrics(
    processed1: str,
    processed2: str,
    ops: Sequence[EditOperation],
    s_obs: float,
    context: ComparisonContext,
    degraded: bool = False,
) -> dict:
    matrix = context.confusion_matrix
    probabilities = matrix.probabilities()
    frequencies = glyph_frequencies(processed1, processed2)
    s_baseline = overall_baseline_agreement(
        frequencies, per_glyph_baseline_agreement(probabilities, matrix.glyphs)
    )
    s_corr = corrected_similarity(s_obs, s_baseline)

    # no alignment to weigh without an edit script
    s_adj = None
    if not degraded:
        table = weight_table_for(matrix, frequencies)
        s_adj = weighted_similarity(build_character_alignment(ops), table)
    log.debug("bias metrics: s_obs=%.4f s_baseline=%.4f s_corr=%.4f s_adj=%s",
              s_obs, s_baseline, s_corr, s_adj)
    return {
        "s_baseline": s_baseline,
        "s_corr": s_corr,
        "s_adj": s_adj,
        "glyph_error_rates": glyph_error_rates(probabilities, matrix.glyphs),
    }


def _word_report(
    text1: str,
    text2: str,
    ops: Sequence[EditOperation],
    options: NormalizationOptions,
) -> SimilarityReport:
    granularity = Granularity.WORD
    counting_options = replace(options, keep_whitespace=False)
    words1 = word_tokens_for_metrics(normalize(text1, counting_options, granularity))
    words2 = word_tokens_for_metrics(normalize(text2, counting_options, granularity))
    len1, len2 = len(words1), len(words2)

    degraded = not ops and bool(len1 or len2)
    if degraded:
        log.warning("build_similarity_report: empty edit script for non-empty texts; "
                    "scoring from word-level Levenshtein distance")
        distance = levenshtein_distance(words1, words2)
        edit_counts = None
    else:
        distance = compute_distance(ops, granularity)
        edit_counts = count_edits(ops)

    word_stats1 = word_statistics(text1, len1, options)
    word_stats2 = word_statistics(text2, len2, options)
    return SimilarityReport(
        granularity=granularity,
        distance=distance,
        total_text1=len1,
        total_text2=len2,
        s_obs=observed_similarity(distance, len1, len2),
        degraded=degraded,
        jaccard_similarity=jaccard_similarity(text1, text2, options),
        cosine_similarity=cosine_similarity(text1, text2, options),
        vocabulary_overlap=vocabulary_overlap(word_stats1.word_frequencies,
                                              word_stats2.word_frequencies),
        word_stats_text1=word_stats1,
        word_stats_text2=word_stats2,
        **(edit_counts or {}),
        **error_rates(distance, len1, len2, granularity, edit_counts),
    )


def build_similarity_report(
    text1: str,
    text2: str,
    ops: Sequence[EditOperation],
    granularity: Granularity,
    options: NormalizationOptions,
    context: Optional[ComparisonContext] = None,
) -> SimilarityReport:
    """
    Score an edit script.

    Args:
        text1, text2: Raw texts the script was generated from
        ops: Edit script at `granularity`; for WORD it should come from a
            whitespace-excluded diff so whitespace never counts as a word edit
        granularity: WORD or CHARACTER
        options: Normalization flags used for the script
        context: Supplies the confusion matrix for bias-aware metrics

    Returns:
        SimilarityReport
    """
    granularity = Granularity.parse(granularity)
    context = context or ComparisonContext()

    if granularity == Granularity.WORD:
        return _word_report(text1, text2, ops, options)

    processed1 = normalize(text1, options, granularity)
    processed2 = normalize(text2, options, granularity)
    len1, len2 = len(processed1), len(processed2)

    degraded = not ops and bool(len1 or len2)
    if degraded:
        log.warning("build_similarity_report: empty edit script for non-empty texts; "
                    "scoring from the normalized texts")
        distance = levenshtein_distance(processed1, processed2)
    else:
        distance = compute_distance(ops, granularity)
    s_obs = observed_similarity(distance, len1, len2)

    bias = {}
    if context.confusion_matrix is not None and context.confusion_matrix.size:
        try:
            bias = _bias_metrics(processed1, processed2, ops, s_obs, context, degraded)
        except Exception:
            log.exception("build_similarity_report: bias-aware metrics failed")
            bias = {}
    else:
        log.debug("build_similarity_report: no confusion matrix, skipping bias-aware metrics")

    return SimilarityReport(
        granularity=granularity,
        distance=distance,
        total_text1=len1,
        total_text2=len2,
        s_obs=s_obs,
        degraded=degraded,
        case_changes=character_case_changes(ops),
        char_stats_text1=character_statistics(text1),
        char_stats_text2=character_statistics(text2),
        capitalization_changes=capitalization_changes(text1, text2, options),
        **bias,
        **count_edits(ops),
        **error_rates(distance, len1, len2, granularity),
    )
