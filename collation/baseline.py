"""
Chance-agreement baseline.

S_baseline is the similarity two unrelated texts would reach just by being
read through the same error-prone recognizer: for each true glyph i,
S_i = Σ_k P[i][k]² is the chance two independent readings of i agree, and
S_baseline weights S_i by how common glyph i is in the compared texts.
"""

import logging
from collections import Counter
from typing import Dict, Mapping, Sequence

import numpy as np

log = logging.getLogger("collation.baseline")


def glyph_frequencies(text1: str, text2: str) -> Dict[str, float]:
    """Relative frequency of each character over text1 + text2; {} when both are empty."""
    combined = (text1 or "") + (text2 or "")
    if not combined:
        return {}
    total = len(combined)
    return {glyph: n / total for glyph, n in Counter(combined).items()}


def per_glyph_baseline_agreement(probabilities: np.ndarray, glyphs: Sequence[str]) -> Dict[str, float]:
    """S_i = Σ_k P[i][k]² for every glyph; glyphs beyond the matrix get 0."""
    probabilities = np.asarray(probabilities, dtype=float)
    agreement = {}
    for i, glyph in enumerate(glyphs):
        if probabilities.ndim == 2 and i < probabilities.shape[0]:
            agreement[glyph] = float(np.sum(probabilities[i] ** 2))
        else:
            agreement[glyph] = 0.0
    return agreement


def overall_baseline_agreement(
    frequencies: Mapping[str, float],
    per_glyph: Mapping[str, float],
    top_n: int = 5,
) -> float:
    """
    S_baseline = Σ_g freq[g] · S[g].

    Glyphs that appear in the texts but not in the confusion matrix
    contribute 0. The top contributors are logged at debug level.
    """
    contributions = []
    s_baseline = 0.0
    for glyph, freq in frequencies.items():
        s_g = per_glyph.get(glyph, 0.0)
        contribution = freq * s_g
        contributions.append((contribution, glyph, freq, s_g))
        s_baseline += contribution

    if log.isEnabledFor(logging.DEBUG):
        contributions.sort(key=lambda c: c[0], reverse=True)
        for contribution, glyph, freq, s_g in contributions[:top_n]:
            log.debug("S_baseline contributor %r: freq=%.4f S_g=%.4f contrib=%.6f",
                      glyph, freq, s_g, contribution)
        log.debug("S_baseline=%.6f over %d glyphs", s_baseline, len(frequencies))

    # float drift can push a sum of exact shares just past 1
    return min(s_baseline, 1.0)
