"""
Variant-form tally.

Counts historical and typographic variant forms (logograms, ligatures,
archaic letters, u/v/i/j/w conventions) in two raw texts, and counts where
one text uses a form the other spells out.

Change detection works on a literal character diff of the raw texts, not on
the normalized comparison: normalization would erase exactly the variants
being counted.
"""

import logging
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .config import NormalizationOptions
from .errors import DiffTimeoutError
from .sequence_diff import DIFF_DELETE, DIFF_INSERT, DiffOp, SequenceDiffer
from .variant_forms import (
    ALL_VARIANT_FORMS,
    ARCHAIC_LETTERS,
    LIGATURES,
    LOGOGRAMS,
    UVW_FORMS,
)

log = logging.getLogger("collation.variants")


class VariantAnalysis(BaseModel):
    """Raw form counts per text, change counts, and per-category totals."""
    text1_tallies: Dict[str, int] = Field(default_factory=dict)
    text2_tallies: Dict[str, int] = Field(default_factory=dict)
    change_tallies: Dict[str, int] = Field(default_factory=dict)
    category_totals: Dict[str, int] = Field(default_factory=dict)


CATEGORY_TABLES = (
    ("logograms", LOGOGRAMS),
    ("ligatures", LIGATURES),
    ("archaic", ARCHAIC_LETTERS),
    ("uvw_changes", UVW_FORMS),
)


def tally_raw_forms(text: str) -> Dict[str, int]:
    """Case-sensitive, non-overlapping occurrence count of every variant form."""
    tallies = {}
    for form in ALL_VARIANT_FORMS:
        count = text.count(form)
        if count > 0:
            tallies[form] = count
    return tallies


def paired_changes(diffs: List[DiffOp]) -> List[Tuple[str, str]]:
    """
    (deleted, inserted) text of every adjacent deletion/insertion pair.

    Pairs are taken in either order and both ops are consumed.
    """
    pairs = []
    i = 0
    while i < len(diffs) - 1:
        (op1, text1), (op2, text2) = diffs[i], diffs[i + 1]
        if op1 == DIFF_DELETE and op2 == DIFF_INSERT:
            pairs.append((text1, text2))
            i += 2
        elif op1 == DIFF_INSERT and op2 == DIFF_DELETE:
            pairs.append((text2, text1))
            i += 2
        else:
            i += 1
    return pairs


def _bump(tallies: Dict[str, int], key: str):
    tallies[key] = tallies.get(key, 0) + 1


def _tally_pair(deleted: str, inserted: str, options: NormalizationOptions, changes: Dict[str, int]):
    for _, table in CATEGORY_TABLES:
        for form, expansion in table.items():
            if form in deleted and expansion in inserted:
                _bump(changes, f"{form}→{expansion}")
            if expansion in deleted and form in inserted:
                _bump(changes, f"{expansion}→{form}")

    deleted_lower, inserted_lower = deleted.lower(), inserted.lower()
    if options.fold_u_to_v:
        if "u" in deleted_lower and "v" in inserted_lower:
            _bump(changes, "u→v")
        if "v" in deleted_lower and "u" in inserted_lower:
            _bump(changes, "v→u")
    if options.fold_j_to_i:
        if "i" in deleted_lower and "j" in inserted_lower:
            _bump(changes, "i→j")
        if "j" in deleted_lower and "i" in inserted_lower:
            _bump(changes, "j→i")


def category_totals(changes: Dict[str, int], options: NormalizationOptions) -> Dict[str, int]:
    totals = {}
    for category, table in CATEGORY_TABLES:
        total = 0
        for form, expansion in table.items():
            total += changes.get(f"{form}→{expansion}", 0)
            total += changes.get(f"{expansion}→{form}", 0)
        totals[category] = total

    totals["uv_swaps"] = (changes.get("u→v", 0) + changes.get("v→u", 0)) if options.fold_u_to_v else 0
    totals["ij_swaps"] = (changes.get("i→j", 0) + changes.get("j→i", 0)) if options.fold_j_to_i else 0
    return totals


def analyze_variants(
    raw1: str,
    raw2: str,
    options: NormalizationOptions,
    differ: Optional[SequenceDiffer] = None,
) -> VariantAnalysis:
    """
    Tally variant forms and variant changes between two raw texts.

    Args:
        raw1: First text, unnormalized
        raw2: Second text, unnormalized
        options: Enables the u/v and i/j swap tallies
        differ: Literal differ for the character diff

    Returns:
        VariantAnalysis; change keys look like "æ→ae" or "ae→æ". When the
        diff fails or times out only the raw form tallies are filled in.
    """
    differ = differ or SequenceDiffer()
    try:
        diffs = differ.cleanup_semantic(differ.diff_main(raw1 or "", raw2 or ""))
    except DiffTimeoutError as e:
        log.warning("analyze_variants: %s; skipping change tallies", e)
        diffs = []
    except Exception:
        log.exception("analyze_variants: diff failed; skipping change tallies")
        diffs = []

    changes: Dict[str, int] = {}
    pairs = paired_changes(diffs)
    for deleted, inserted in pairs:
        _tally_pair(deleted, inserted, options, changes)

    analysis = VariantAnalysis(
        text1_tallies=tally_raw_forms(raw1 or ""),
        text2_tallies=tally_raw_forms(raw2 or ""),
        change_tallies=changes,
        category_totals=category_totals(changes, options),
    )
    log.debug("analyze_variants: %d paired changes, totals=%s", len(pairs), analysis.category_totals)
    return analysis
