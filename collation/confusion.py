"""
Glyph confusion matrix: validated container, probability matrix, builder.

A confusion matrix C is indexed by an ordered glyph list; C[i][j] counts how
often glyph j was observed when the true glyph was i. Row-normalizing C
gives P(observed j | true i), the recognizer's error profile.

Matrices are caller-owned configuration. They are loaded from YAML the same
way OCR confusion weights are:

    glyphs: [a, e, o]
    matrix:
      - [90, 8, 2]
      - [5, 95, 0]
      - [3, 0, 97]
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import yaml

from .errors import ConfusionMatrixError
from .sequence_diff import DIFF_DELETE, DIFF_EQUAL, DIFF_INSERT, SequenceDiffer


# Pseudo-glyphs used when a matrix is derived from a diff
DELETE_TOKEN = "[DEL]"   # true glyph observed as nothing
INSERT_TOKEN = "[INS]"   # nothing observed as a glyph

log = logging.getLogger("collation.confusion")


# =============================================================================
# CONFUSION MATRIX
# =============================================================================

@dataclass(frozen=True)
class ConfusionMatrix:
    """
    Square count matrix over an ordered glyph list.

    Validation happens at construction, so every ConfusionMatrix that
    reaches the scoring code is square and non-negative. Instances are
    hashable, which lets derived tables be memoized by exact input.
    """
    glyphs: Tuple[str, ...]
    counts: Tuple[Tuple[float, ...], ...]

    def __post_init__(self):
        glyphs = tuple(self.glyphs)
        try:
            counts = tuple(tuple(row) for row in self.counts)
        except TypeError:
            raise ConfusionMatrixError("matrix must be a list of rows") from None
        object.__setattr__(self, "glyphs", glyphs)
        object.__setattr__(self, "counts", counts)
        self._validate()

    def _validate(self):
        for glyph in self.glyphs:
            if not isinstance(glyph, str):
                raise ConfusionMatrixError(f"glyph {glyph!r} is not a string")
        if len(set(self.glyphs)) != len(self.glyphs):
            raise ConfusionMatrixError("glyph list contains duplicates")

        size = len(self.glyphs)
        if len(self.counts) != size:
            raise ConfusionMatrixError(
                f"matrix has {len(self.counts)} rows but there are {size} glyphs"
            )
        for i, row in enumerate(self.counts):
            if len(row) != size:
                raise ConfusionMatrixError(
                    f"row {i} has {len(row)} columns but there are {size} glyphs"
                )
            for value in row:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfusionMatrixError(f"row {i} contains non-numeric value {value!r}")
                if value < 0 or not math.isfinite(value):
                    raise ConfusionMatrixError(f"row {i} contains invalid count {value!r}")

    @property
    def size(self) -> int:
        return len(self.glyphs)

    def index_of(self, glyph: str) -> Optional[int]:
        try:
            return self.glyphs.index(glyph)
        except ValueError:
            return None

    def count(self, true_glyph: str, observed_glyph: str) -> float:
        i, j = self.index_of(true_glyph), self.index_of(observed_glyph)
        if i is None or j is None:
            return 0
        return self.counts[i][j]

    def probabilities(self) -> np.ndarray:
        return to_probability_matrix(self.counts)

    def to_dict(self) -> dict:
        return {
            "glyphs": list(self.glyphs),
            "matrix": [list(row) for row in self.counts],
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "ConfusionMatrix":
        """Build from {"glyphs": [...], "matrix": [[...], ...]}."""
        if not isinstance(data, Mapping) or "glyphs" not in data or "matrix" not in data:
            raise ConfusionMatrixError("expected a mapping with 'glyphs' and 'matrix'")
        glyphs = data["glyphs"] or []
        matrix = data["matrix"] or []
        if not isinstance(glyphs, list) or not isinstance(matrix, list):
            raise ConfusionMatrixError("'glyphs' and 'matrix' must be lists")
        return cls(tuple(glyphs), tuple(matrix))

    @classmethod
    def from_mapping(
        cls,
        raw: Mapping[str, Mapping[str, float]],
        glyphs: Optional[Sequence[str]] = None,
    ) -> "ConfusionMatrix":
        """
        Build from a sparse {true_glyph: {observed_glyph: count}} mapping.

        Args:
            raw: Sparse counts
            glyphs: Glyph order; derived with sort_glyphs() when omitted.
                Counts for glyphs not in the list are dropped.
        """
        if glyphs is None:
            glyphs = sort_glyphs(raw)
        index = {g: i for i, g in enumerate(glyphs)}
        rows = [[0] * len(glyphs) for _ in glyphs]
        for true_glyph, observed in raw.items():
            if true_glyph not in index:
                continue
            row = rows[index[true_glyph]]
            for observed_glyph, n in observed.items():
                if observed_glyph in index:
                    row[index[observed_glyph]] = n
        return cls(tuple(glyphs), tuple(tuple(r) for r in rows))

    @classmethod
    def from_yaml(cls, path) -> "ConfusionMatrix":
        """
        Load a matrix from a YAML file.

        Accepts either a top-level {glyphs, matrix} document or one nested
        under a `confusion_matrix` key (the collation config layout).
        """
        config_file = Path(path)
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if isinstance(data, Mapping) and "confusion_matrix" in data:
            data = data["confusion_matrix"]
        matrix = cls.from_dict(data)
        log.info("Loaded %dx%d confusion matrix from %s", matrix.size, matrix.size, config_file)
        return matrix

    def to_yaml(self, path) -> None:
        with open(Path(path), "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, allow_unicode=True, default_flow_style=None, sort_keys=False)


def sort_glyphs(raw: Mapping[str, Mapping[str, float]]) -> List[str]:
    """Every glyph seen as a row or column key, sorted, with [DEL] then [INS] last."""
    seen = set(raw)
    for observed in raw.values():
        seen.update(observed)
    tail = [t for t in (DELETE_TOKEN, INSERT_TOKEN) if t in seen]
    return sorted(seen.difference(tail)) + tail


# =============================================================================
# PROBABILITY MATRIX
# =============================================================================

def to_probability_matrix(counts: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Row-normalize a count matrix.

    A row whose counts sum to zero becomes a uniform distribution, so the
    result is always row-stochastic.
    """
    matrix = np.asarray(counts, dtype=float)
    if matrix.size == 0:
        return np.zeros((len(counts), len(counts)))

    sums = matrix.sum(axis=1, keepdims=True)
    uniform = np.full_like(matrix, 1.0 / matrix.shape[1])
    with np.errstate(divide="ignore", invalid="ignore"):
        probabilities = np.where(sums > 0, matrix / np.where(sums > 0, sums, 1.0), uniform)

    zero_rows = int(np.count_nonzero(sums == 0))
    if zero_rows:
        log.debug("to_probability_matrix: %d zero-sum rows set to uniform", zero_rows)
    return probabilities


def glyph_reliabilities(probabilities: np.ndarray, glyphs: Sequence[str]) -> Dict[str, float]:
    """r[g] = P(observed g | true g), the diagonal of the probability matrix."""
    reliabilities = {}
    for i, glyph in enumerate(glyphs):
        if i < probabilities.shape[0] and i < probabilities.shape[1]:
            reliabilities[glyph] = float(probabilities[i, i])
        else:
            reliabilities[glyph] = 0.0
    return reliabilities


def glyph_error_rates(probabilities: np.ndarray, glyphs: Sequence[str]) -> Dict[str, float]:
    return {g: 1.0 - r for g, r in glyph_reliabilities(probabilities, glyphs).items()}


# =============================================================================
# BUILDING A MATRIX FROM A GROUND-TRUTH / OBSERVED PAIR
# =============================================================================

def count_confusions(diffs: Sequence[Tuple[int, str]]) -> Dict[str, Dict[str, int]]:
    """
    Tally {true: {observed: n}} from a character diff of truth vs observed.

    - equal characters count on the diagonal
    - a deletion followed by an insertion is read position by position;
      surplus deleted characters map to [DEL], surplus inserted ones come
      from [INS]
    - a lone deletion maps to [DEL], a lone insertion comes from [INS]
    """
    raw: Dict[str, Dict[str, int]] = {}

    def bump(true_glyph: str, observed_glyph: str):
        row = raw.setdefault(true_glyph, {})
        row[observed_glyph] = row.get(observed_glyph, 0) + 1

    i = 0
    while i < len(diffs):
        op, text = diffs[i]
        if op == DIFF_EQUAL:
            for ch in text:
                bump(ch, ch)
        elif op == DIFF_DELETE:
            if i + 1 < len(diffs) and diffs[i + 1][0] == DIFF_INSERT:
                inserted = diffs[i + 1][1]
                shared = min(len(text), len(inserted))
                for true_ch, observed_ch in zip(text, inserted):
                    bump(true_ch, observed_ch)
                for ch in text[shared:]:
                    bump(ch, DELETE_TOKEN)
                for ch in inserted[shared:]:
                    bump(INSERT_TOKEN, ch)
                i += 1
            else:
                for ch in text:
                    bump(ch, DELETE_TOKEN)
        elif op == DIFF_INSERT:
            for ch in text:
                bump(INSERT_TOKEN, ch)
        i += 1
    return raw


def build_confusion_matrix(
    truth: str,
    observed: str,
    differ: Optional[SequenceDiffer] = None,
) -> ConfusionMatrix:
    """
    Derive a confusion matrix from a ground-truth text and a recognizer's
    output for it, using a literal character diff with semantic cleanup.
    """
    differ = differ or SequenceDiffer()
    diffs = differ.cleanup_semantic(differ.diff_main(truth, observed))
    raw = count_confusions(diffs)
    matrix = ConfusionMatrix.from_mapping(raw)
    log.info("Built %dx%d confusion matrix from %d diff ops", matrix.size, matrix.size, len(diffs))
    return matrix
