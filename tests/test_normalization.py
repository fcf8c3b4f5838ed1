#!/usr/bin/env python3
"""
Unit tests for variant-aware normalization and tokenization.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from collation.config import Granularity, NormalizationOptions
from collation.normalization import normalize
from collation.tokenize import normalize_and_tokenize, tokenize, word_tokens_for_metrics
from collation.variant_forms import LIGATURES, replace_all


def opts(**kwargs) -> NormalizationOptions:
    return NormalizationOptions(**kwargs)


def test_defaults_leave_text_alone():
    """Default options only touch whitespace at character granularity."""
    text = "Æther & ſome ﬁne Words, here."
    assert normalize(text, opts()) == text
    assert normalize(text, opts(), Granularity.WORD) == text
    print("✅ Default options tests passed")


def test_variant_folds():
    assert normalize("bread & butter", opts(fold_logograms=True)) == "bread and butter"
    assert normalize("æsthetic ﬁne", opts(fold_ligatures=True)) == "aesthetic fine"
    assert normalize("Æther", opts(fold_ligatures=True)) == "AEther"
    assert normalize("ſome", opts(fold_archaic_letters=True)) == "some"
    assert normalize("vvhen", opts(normalize_uvw=True)) == "when"
    assert normalize("Uniuersity", opts(fold_u_to_v=True)) == "Vniversity"
    assert normalize("maJestie", opts(fold_j_to_i=True)) == "maIestie"
    print("✅ Variant fold tests passed")


def test_fold_order():
    """uu -> w runs before u -> v, and case folding sees expanded ligatures."""
    both = opts(normalize_uvw=True, fold_u_to_v=True)
    assert normalize("uuas", both) == "was"
    assert normalize("Æ", opts(fold_ligatures=True, keep_capitalization=False)) == "ae"
    # Logogram expansion output is then punctuation-free
    assert normalize("a & b", opts(fold_logograms=True, keep_punctuation=False)) == "a and b"
    print("✅ Fold order tests passed")


def test_case_and_punctuation():
    assert normalize("Hello World", opts(keep_capitalization=False)) == "hello world"
    assert normalize("Hello, world! (yes)", opts(keep_punctuation=False)) == "Hello world yes"
    assert normalize("¿Qué? †", opts(keep_punctuation=False)) == "Qué "
    print("✅ Case and punctuation tests passed")


def test_whitespace_policy():
    assert normalize("  a \n\t b  ", opts(collapse_whitespace=True)) == "a b"
    assert normalize("a\r\nb", opts(keep_whitespace=True)) == "a\nb"
    assert normalize("a b\nc", opts(), Granularity.CHARACTER) == "abc"
    assert normalize("a b\nc", opts(), Granularity.WORD) == "a b\nc"
    # Collapsing takes precedence over keeping
    assert normalize("a  \r\n b", opts(collapse_whitespace=True, keep_whitespace=True)) == "a b"
    # Kept whitespace survives character granularity
    assert normalize("a b", opts(keep_whitespace=True), Granularity.CHARACTER) == "a b"
    print("✅ Whitespace policy tests passed")


def test_edge_cases():
    assert normalize("", opts(fold_ligatures=True)) == ""
    assert normalize(None, opts()) == ""
    assert replace_all("", LIGATURES) == ""
    print("✅ Edge case tests passed")


def test_tokenize_words():
    assert tokenize("the  quick\nfox", Granularity.WORD, opts()) == ["the", "quick", "fox"]
    assert tokenize("", Granularity.WORD, opts()) == []
    assert tokenize("   ", Granularity.WORD, opts()) == []


def test_tokenize_words_keeping_whitespace():
    keep = opts(keep_whitespace=True)
    assert tokenize("a\nb", Granularity.WORD, keep) == ["a", "\n", "b"]
    assert tokenize("a  b", Granularity.WORD, keep) == ["a", "  ", "b"]
    assert "".join(tokenize("one two\nthree ", Granularity.WORD, keep)) == "one two\nthree "


def test_tokenize_characters():
    assert tokenize("ab c", Granularity.CHARACTER, opts()) == ["a", "b", " ", "c"]
    assert normalize_and_tokenize("a b", Granularity.CHARACTER, opts()) == ["a", "b"]
    assert normalize_and_tokenize("ﬁ", Granularity.CHARACTER, opts(fold_ligatures=True)) == ["f", "i"]


def test_word_tokens_for_metrics():
    assert word_tokens_for_metrics("the quick\n fox") == ["the", "quick", "fox"]
    assert word_tokens_for_metrics("") == []


if __name__ == "__main__":
    test_defaults_leave_text_alone()
    test_variant_folds()
    test_fold_order()
    test_case_and_punctuation()
    test_whitespace_policy()
    test_edge_cases()
    test_tokenize_words()
    test_tokenize_words_keeping_whitespace()
    test_tokenize_characters()
    test_word_tokens_for_metrics()
    print("\n✅ All normalization tests passed!")
