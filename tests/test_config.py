#!/usr/bin/env python3
"""
Tests for comparison options and context-file loading.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from collation.config import (
    CONFIG_ENV_VAR,
    ComparisonContext,
    Granularity,
    NormalizationOptions,
    default_config,
    default_context,
    load_config,
    load_context,
)
from collation.errors import CollationError, ConfusionMatrixError
from collation.sequence_diff import DiffSettings


CONTEXT_YAML = """\
normalization:
  fold_ligatures: true
  keep_capitalization: false
diff:
  timeout: 2.5
  semantic_cleanup: false
confusion_matrix:
  glyphs: [a, e]
  matrix:
    - [0, 10]
    - [0, 10]
"""


def test_granularity_parse():
    assert Granularity.parse("word") is Granularity.WORD
    assert Granularity.parse("CHARACTER") is Granularity.CHARACTER
    assert Granularity.parse("char") is Granularity.CHARACTER
    assert Granularity.parse(Granularity.WORD) is Granularity.WORD
    with pytest.raises(CollationError):
        Granularity.parse("sentence")


def test_options_dict_round_trip():
    options = NormalizationOptions(fold_ligatures=True, keep_whitespace=True)
    data = options.to_dict()
    assert data["fold_ligatures"] is True
    assert data["keep_capitalization"] is True
    assert NormalizationOptions.from_dict(data) == options
    assert NormalizationOptions.from_dict(None) == NormalizationOptions()


def test_options_reject_unknown_keys():
    with pytest.raises(CollationError, match="ignore_everything"):
        NormalizationOptions.from_dict({"ignore_everything": True})


def test_options_are_frozen():
    with pytest.raises(AttributeError):
        NormalizationOptions().fold_ligatures = True


def test_load_full_config(tmp_path):
    path = tmp_path / "collation.yaml"
    path.write_text(CONTEXT_YAML, encoding="utf-8")

    config = load_config(path)
    assert config.normalization.fold_ligatures is True
    assert config.normalization.keep_capitalization is False
    assert config.context.diff == DiffSettings(timeout=2.5, semantic_cleanup=False)
    assert config.context.glyphs == ("a", "e")
    assert load_context(path) == config.context


def test_sections_are_optional(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    context = load_context(path)
    assert context.confusion_matrix is None
    assert context.diff == DiffSettings()


def test_bad_matrix_in_config(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("confusion_matrix:\n  glyphs: [a]\n  matrix: [[1, 2]]\n", encoding="utf-8")
    with pytest.raises(ConfusionMatrixError):
        load_context(path)


def test_negative_timeout_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("diff:\n  timeout: -1\n", encoding="utf-8")
    with pytest.raises(CollationError):
        load_context(path)


def test_default_context_from_env(tmp_path):
    path = tmp_path / "collation.yaml"
    path.write_text(CONTEXT_YAML, encoding="utf-8")
    assert default_context({CONFIG_ENV_VAR: str(path)}).glyphs == ("a", "e")
    assert default_config({CONFIG_ENV_VAR: str(path)}).normalization.fold_ligatures is True


def test_default_context_without_file(tmp_path):
    assert default_context({}) == ComparisonContext()
    missing = tmp_path / "nope.yaml"
    assert default_context({CONFIG_ENV_VAR: str(missing)}) == ComparisonContext()


def test_context_helpers():
    context = ComparisonContext()
    assert context.glyphs == ()
    assert context.to_dict() == {"glyphs": None, "diff": DiffSettings().to_dict()}
    assert context.differ().settings == context.diff
