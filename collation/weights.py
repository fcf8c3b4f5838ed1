"""
Bayesian pair weights.

w(x, y) is the probability that observed glyphs x and y come from the same
true glyph, given the recognizer's error profile P and the true-glyph
frequencies π:

    sameTrue(x, y) = Σ_i π_i · P[i][x] · P[i][y]
    diffTrue(x, y) = pObs[x] · pObs[y] − Σ_k π_k² · P[k][x] · P[k][y]
    pObs[g]        = Σ_i π_i · P[i][g]

    w = LR / (1 + LR),  LR = sameTrue / diffTrue   (equal prior odds)

w is 0 when both likelihoods are 0 and 1 when diffTrue ≤ 0. The table is
symmetric and costs O(G³) for G glyphs.
"""

import logging
from functools import lru_cache
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .confusion import ConfusionMatrix

log = logging.getLogger("collation.weights")

WEIGHT_CACHE_SIZE = 32


class WeightTable:
    """Read-only w(x, y) lookup over a glyph list."""

    def __init__(self, glyphs: Sequence[str], weights: np.ndarray):
        self.glyphs = tuple(glyphs)
        self._index = {g: i for i, g in enumerate(self.glyphs)}
        self._weights = np.asarray(weights, dtype=float)
        self._weights.setflags(write=False)

    def __contains__(self, glyph) -> bool:
        return glyph in self._index

    def __len__(self) -> int:
        return len(self.glyphs)

    def get(self, x: str, y: str) -> Optional[float]:
        """w(x, y), or None when either glyph is not in the table."""
        i = self._index.get(x)
        j = self._index.get(y)
        if i is None or j is None:
            return None
        return float(self._weights[i, j])

    def as_array(self) -> np.ndarray:
        return self._weights

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            x: {y: float(self._weights[i, j]) for j, y in enumerate(self.glyphs)}
            for i, x in enumerate(self.glyphs)
        }


def build_weight_table(
    probabilities: np.ndarray,
    frequencies: Mapping[str, float],
    glyphs: Sequence[str],
) -> WeightTable:
    """
    Compute w(x, y) for every ordered glyph pair.

    Args:
        probabilities: Row-stochastic P[true][observed], ordered like glyphs
        frequencies: True-glyph frequencies; glyphs missing here get π = 0
        glyphs: Glyph order for P and for the table

    Returns:
        WeightTable (empty when there are no glyphs)
    """
    glyphs = tuple(glyphs)
    P = np.asarray(probabilities, dtype=float)
    if not glyphs or P.size == 0:
        return WeightTable((), np.zeros((0, 0)))

    pi = np.array([frequencies.get(g, 0.0) for g in glyphs], dtype=float)

    p_obs = pi @ P
    same_true = (P * pi[:, None]).T @ P
    diff_true = np.outer(p_obs, p_obs) - (P * (pi ** 2)[:, None]).T @ P

    weights = np.empty_like(same_true)
    impossible = (same_true == 0) & (diff_true == 0)
    only_same = ~impossible & (diff_true <= 0)
    regular = ~impossible & ~only_same

    weights[impossible] = 0.0
    weights[only_same] = 1.0
    lr = same_true[regular] / diff_true[regular]
    weights[regular] = lr / (1.0 + lr)
    weights = np.clip(weights, 0.0, 1.0)

    log.debug("build_weight_table: %d glyphs, %d impossible pairs, %d same-only pairs",
              len(glyphs), int(impossible.sum()), int(only_same.sum()))
    return WeightTable(glyphs, weights)


@lru_cache(maxsize=WEIGHT_CACHE_SIZE)
def _cached_weight_table(
    matrix: ConfusionMatrix,
    frequency_items: Tuple[Tuple[str, float], ...],
) -> WeightTable:
    return build_weight_table(matrix.probabilities(), dict(frequency_items), matrix.glyphs)


def weight_table_for(matrix: ConfusionMatrix, frequencies: Mapping[str, float]) -> WeightTable:
    """Memoized build_weight_table keyed by the exact matrix and frequencies."""
    return _cached_weight_table(matrix, tuple(sorted(frequencies.items())))


def clear_weight_cache():
    _cached_weight_table.cache_clear()
