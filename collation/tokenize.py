"""
Split normalized text into comparison units.
"""

import re
from typing import List

from .config import Granularity, NormalizationOptions
from .normalization import normalize


# Bare newline first so it always wins over a longer whitespace run
_WORD_WITH_WHITESPACE_RE = re.compile(r"\n|\S+|\s+")


def tokenize(text: str, granularity: Granularity, options: NormalizationOptions) -> List[str]:
    """
    Tokenize already-normalized text.

    WORD, whitespace kept: newlines, non-whitespace runs and other
    whitespace runs, each as its own token.
    WORD, whitespace excluded: whitespace-separated words.
    CHARACTER: one token per character.
    """
    if not text:
        return []
    if granularity == Granularity.CHARACTER:
        return list(text)
    if options.keep_whitespace:
        return _WORD_WITH_WHITESPACE_RE.findall(text)
    return text.split()


def normalize_and_tokenize(
    text: str,
    granularity: Granularity,
    options: NormalizationOptions,
) -> List[str]:
    return tokenize(normalize(text, options, granularity), granularity, options)


def word_tokens_for_metrics(text: str) -> List[str]:
    """Whitespace-separated words, used for WER and word-set metrics."""
    return text.split() if text else []
