"""
Comparison configuration.

This module defines:
- Granularity (word vs character comparison)
- NormalizationOptions (which variant forms and text features are ignored)
- ComparisonContext (caller-owned confusion matrix + diff tuning)
- YAML loading of a context file

A context file looks like:

    normalization:
      fold_ligatures: true
      keep_capitalization: false
    diff:
      timeout: 2.0
    confusion_matrix:
      glyphs: [a, e]
      matrix:
        - [0, 10]
        - [0, 10]

Every section is optional. COLLATION_CONFIG names the file default_context()
reads; when it is unset or the file does not exist, defaults apply.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .confusion import ConfusionMatrix
from .errors import CollationError
from .sequence_diff import DiffSettings, SequenceDiffer


CONFIG_ENV_VAR = "COLLATION_CONFIG"

log = logging.getLogger("collation.config")


# =============================================================================
# Granularity
# =============================================================================

class Granularity(str, Enum):
    WORD = "word"
    CHARACTER = "character"

    @classmethod
    def parse(cls, value) -> "Granularity":
        """Accept an enum member or its name/value ("word", "char", "CHARACTER")."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in ("char", "chars", "characters"):
            key = "character"
        elif key == "words":
            key = "word"
        try:
            return cls(key)
        except ValueError:
            raise CollationError(f"unknown granularity: {value!r}") from None


# =============================================================================
# Normalization options
# =============================================================================

@dataclass(frozen=True)
class NormalizationOptions:
    """
    Flags controlling normalize() and the variant tally.

    fold_* flags erase a variant form before comparison; keep_* flags decide
    whether a text feature takes part in the comparison at all.
    """
    fold_logograms: bool = False         # & -> and, ⁊ -> et ...
    fold_ligatures: bool = False         # æ -> ae, ﬁ -> fi ...
    fold_archaic_letters: bool = False   # ſ -> s, ꝛ -> r
    normalize_uvw: bool = False          # uu / vv -> w
    fold_u_to_v: bool = False
    fold_j_to_i: bool = False
    keep_capitalization: bool = True
    keep_punctuation: bool = True
    keep_whitespace: bool = False
    collapse_whitespace: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "NormalizationOptions":
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise CollationError(f"unknown normalization options: {', '.join(unknown)}")
        return cls(**{k: bool(v) for k, v in data.items()})


# =============================================================================
# Comparison context
# =============================================================================

@dataclass(frozen=True)
class ComparisonContext:
    """
    Caller-owned settings for a comparison.

    The confusion matrix is only read; swapping it means building a new
    context. Bias-corrected metrics are skipped when it is None.
    """
    confusion_matrix: Optional[ConfusionMatrix] = None
    diff: DiffSettings = field(default_factory=DiffSettings)

    @property
    def glyphs(self) -> Tuple[str, ...]:
        if self.confusion_matrix is None:
            return ()
        return self.confusion_matrix.glyphs

    def differ(self) -> SequenceDiffer:
        return SequenceDiffer(self.diff)

    def with_confusion_matrix(self, matrix: Optional[ConfusionMatrix]) -> "ComparisonContext":
        return ComparisonContext(confusion_matrix=matrix, diff=self.diff)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "glyphs": len(self.glyphs) if self.confusion_matrix is not None else None,
            "diff": self.diff.to_dict(),
        }


@dataclass(frozen=True)
class CollationConfig:
    """Everything a context file can carry."""
    context: ComparisonContext = field(default_factory=ComparisonContext)
    normalization: NormalizationOptions = field(default_factory=NormalizationOptions)


def _diff_settings_from_dict(data: Optional[Mapping[str, Any]]) -> DiffSettings:
    if not data:
        return DiffSettings()
    defaults = DiffSettings()
    timeout = float(data.get("timeout", defaults.timeout))
    if timeout < 0:
        raise CollationError(f"diff timeout must be >= 0, got {timeout}")
    return DiffSettings(
        timeout=timeout,
        semantic_cleanup=bool(data.get("semantic_cleanup", defaults.semantic_cleanup)),
    )


def config_from_dict(data: Optional[Mapping[str, Any]]) -> CollationConfig:
    data = data or {}
    if not isinstance(data, Mapping):
        raise CollationError("config file must contain a mapping")

    matrix = None
    if data.get("confusion_matrix") is not None:
        matrix = ConfusionMatrix.from_dict(data["confusion_matrix"])

    return CollationConfig(
        context=ComparisonContext(
            confusion_matrix=matrix,
            diff=_diff_settings_from_dict(data.get("diff")),
        ),
        normalization=NormalizationOptions.from_dict(data.get("normalization")),
    )


def load_config(path) -> CollationConfig:
    config_file = Path(path)
    with open(config_file, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    config = config_from_dict(data)
    log.info("Loaded collation config from %s: %s", config_file, config.context.to_dict())
    return config


def load_context(path) -> ComparisonContext:
    """Read a ComparisonContext from a YAML context file."""
    return load_config(path).context


def default_config(env: Optional[Dict[str, str]] = None) -> CollationConfig:
    """
    Config named by COLLATION_CONFIG, or defaults.

    A set variable pointing at a missing file is logged and ignored.
    """
    env = os.environ if env is None else env
    path = env.get(CONFIG_ENV_VAR)
    if not path:
        return CollationConfig()
    if not Path(path).exists():
        log.warning("%s points at missing file %s; using defaults", CONFIG_ENV_VAR, path)
        return CollationConfig()
    return load_config(path)


def default_context(env: Optional[Dict[str, str]] = None) -> ComparisonContext:
    return default_config(env).context
