"""
Variant-aware text normalization for comparison.

normalize() applies, in this fixed order (later folds see the output of
earlier ones):
1. Logogram expansion (& → and)
2. Ligature expansion (æ → ae)
3. Archaic letters (ſ → s)
4. uu / vv → w
5. u → v, U → V
6. j → i, J → I
7. Lowercase, unless capitalization is kept
8. Strip punctuation, unless punctuation is kept
9. Whitespace policy
"""

import re
from typing import Optional

from .config import Granularity, NormalizationOptions
from .variant_forms import (
    ARCHAIC_LETTERS,
    LIGATURES,
    LOGOGRAMS,
    PUNCTUATION_RE,
    UVW_FORMS,
    replace_all,
)


_WHITESPACE_RUN_RE = re.compile(r"\s+")


def normalize(
    text: str,
    options: NormalizationOptions,
    granularity: Optional[Granularity] = None,
) -> str:
    """
    Normalize text before it is tokenized and diffed.

    Args:
        text: Raw input text
        options: Which folds to apply and which features to keep
        granularity: Only CHARACTER changes behaviour: when whitespace is
            neither kept nor collapsed, all of it is removed.

    Returns:
        Normalized text ("" for empty input)
    """
    if not text:
        return ""

    if options.fold_logograms:
        text = replace_all(text, LOGOGRAMS)
    if options.fold_ligatures:
        text = replace_all(text, LIGATURES)
    if options.fold_archaic_letters:
        text = replace_all(text, ARCHAIC_LETTERS)
    if options.normalize_uvw:
        text = replace_all(text, UVW_FORMS)

    if options.fold_u_to_v:
        text = text.replace("u", "v").replace("U", "V")
    if options.fold_j_to_i:
        text = text.replace("j", "i").replace("J", "I")

    if not options.keep_capitalization:
        text = text.lower()
    if not options.keep_punctuation:
        text = PUNCTUATION_RE.sub("", text)

    return apply_whitespace_policy(text, options, granularity)


def apply_whitespace_policy(
    text: str,
    options: NormalizationOptions,
    granularity: Optional[Granularity] = None,
) -> str:
    if options.collapse_whitespace:
        return _WHITESPACE_RUN_RE.sub(" ", text).strip()
    if options.keep_whitespace:
        return text.replace("\r", "")
    if granularity == Granularity.CHARACTER:
        return _WHITESPACE_RUN_RE.sub("", text)
    return text
