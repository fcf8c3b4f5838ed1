"""
Typed edit scripts.

Turns the raw (op, chunk) output of the sequence diff into a list of
EditOperation values: Equal, Deletion, Insertion and Substitution.

Word-level diffs are unrolled token by token, so every word operation
carries exactly one token per side. Character-level operations carry the
whole chunk the diff produced.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from Levenshtein import distance as levenshtein_distance

from .config import ComparisonContext, Granularity, NormalizationOptions
from .errors import DiffTimeoutError
from .normalization import normalize
from .sequence_diff import DIFF_DELETE, DIFF_EQUAL, DIFF_INSERT, DiffOp
from .tokenize import tokenize

log = logging.getLogger("collation.edit_script")


class OpKind(str, Enum):
    EQUAL = "equal"
    DELETION = "deletion"
    INSERTION = "insertion"
    SUBSTITUTION = "substitution"


@dataclass(frozen=True)
class EditOperation:
    """
    One classified difference between the two texts.

    text1 is the operation's share of the first text ("" for insertions),
    text2 its share of the second ("" for deletions). Equal operations carry
    the same text on both sides.
    """
    kind: OpKind
    text1: str
    text2: str

    @classmethod
    def equal(cls, text: str) -> "EditOperation":
        return cls(OpKind.EQUAL, text, text)

    @classmethod
    def deletion(cls, text: str) -> "EditOperation":
        return cls(OpKind.DELETION, text, "")

    @classmethod
    def insertion(cls, text: str) -> "EditOperation":
        return cls(OpKind.INSERTION, "", text)

    @classmethod
    def substitution(cls, text1: str, text2: str) -> "EditOperation":
        return cls(OpKind.SUBSTITUTION, text1, text2)

    @property
    def is_change(self) -> bool:
        return self.kind != OpKind.EQUAL

    @property
    def text(self) -> str:
        """Display text: the side that exists, text1 for substitutions."""
        return self.text2 if self.kind == OpKind.INSERTION else self.text1

    def __str__(self) -> str:
        if self.kind == OpKind.SUBSTITUTION:
            return f"{self.kind.value}({self.text1!r} → {self.text2!r})"
        return f"{self.kind.value}({self.text!r})"


# =============================================================================
# REFINEMENT
# =============================================================================

def refine_diffs(raw_ops: Sequence[DiffOp]) -> List[EditOperation]:
    """
    Classify raw diff ops.

    A deletion immediately followed or preceded by an insertion becomes one
    Substitution (deleted text on side 1, inserted text on side 2); both raw
    ops are consumed.
    """
    ops: List[EditOperation] = []
    i = 0
    while i < len(raw_ops):
        op, chunk = raw_ops[i]
        following = raw_ops[i + 1] if i + 1 < len(raw_ops) else None

        if op == DIFF_DELETE and following is not None and following[0] == DIFF_INSERT:
            ops.append(EditOperation.substitution(_as_text(chunk), _as_text(following[1])))
            i += 2
        elif op == DIFF_INSERT and following is not None and following[0] == DIFF_DELETE:
            ops.append(EditOperation.substitution(_as_text(following[1]), _as_text(chunk)))
            i += 2
        elif op == DIFF_DELETE:
            ops.append(EditOperation.deletion(_as_text(chunk)))
            i += 1
        elif op == DIFF_INSERT:
            ops.append(EditOperation.insertion(_as_text(chunk)))
            i += 1
        elif op == DIFF_EQUAL:
            ops.append(EditOperation.equal(_as_text(chunk)))
            i += 1
        else:
            raise ValueError(f"unknown diff op {op!r}")
    return ops


def _as_text(chunk) -> str:
    return chunk if isinstance(chunk, str) else "".join(chunk)


def unroll_tokens(raw_ops: Sequence[DiffOp]) -> List[DiffOp]:
    """Split token-tuple chunks into one (op, token) pair per token."""
    unrolled: List[DiffOp] = []
    for op, chunk in raw_ops:
        for token in chunk:
            unrolled.append((op, token))
    return unrolled


def drop_whitespace_artifacts(
    ops: List[EditOperation],
    granularity: Granularity,
    options: NormalizationOptions,
) -> List[EditOperation]:
    """
    Remove changes made only of whitespace.

    Applies at word granularity when whitespace is excluded from the
    comparison; otherwise ops are returned unchanged.
    """
    if granularity != Granularity.WORD or options.keep_whitespace:
        return ops
    return [
        op for op in ops
        if not (op.is_change and not op.text1.strip() and not op.text2.strip())
    ]


# =============================================================================
# GENERATION
# =============================================================================

def generate_diffs(
    text1: str,
    text2: str,
    granularity: Granularity,
    options: NormalizationOptions,
    context: Optional[ComparisonContext] = None,
) -> List[EditOperation]:
    """
    Normalize, tokenize and diff two texts.

    Args:
        text1: First (reference) text, raw
        text2: Second text, raw
        granularity: WORD diffs token lists, CHARACTER diffs the normalized
            strings and applies semantic cleanup
        options: Normalization flags
        context: Diff tuning; defaults apply when omitted

    Returns:
        Edit script, or [] when the diff fails or times out
    """
    granularity = Granularity.parse(granularity)
    context = context or ComparisonContext()
    differ = context.differ()

    try:
        if granularity == Granularity.WORD:
            tokens1 = tokenize(normalize(text1, options, granularity), granularity, options)
            tokens2 = tokenize(normalize(text2, options, granularity), granularity, options)
            raw = unroll_tokens(differ.diff_main(tokens1, tokens2))
        else:
            normalized1 = normalize(text1, options, granularity)
            normalized2 = normalize(text2, options, granularity)
            raw = differ.diff_main(normalized1, normalized2)
            if context.diff.semantic_cleanup:
                raw = differ.cleanup_semantic(raw)
        ops = refine_diffs(raw)
    except DiffTimeoutError as e:
        log.warning("generate_diffs: %s; returning empty edit script", e)
        return []
    except Exception:
        log.exception("generate_diffs: diff failed; returning empty edit script")
        return []

    ops = drop_whitespace_artifacts(ops, granularity, options)
    log.debug("generate_diffs(%s): %d ops, %d changes",
              granularity.value, len(ops), sum(1 for op in ops if op.is_change))
    return ops


# =============================================================================
# RECONSTRUCTION AND DISTANCE
# =============================================================================

def text1_side(ops: Sequence[EditOperation]) -> List[str]:
    """Units of the first text in order: tokens for word ops, chunks for character ops."""
    return [op.text1 for op in ops if op.kind != OpKind.INSERTION and op.text1]


def text2_side(ops: Sequence[EditOperation]) -> List[str]:
    return [op.text2 for op in ops if op.kind != OpKind.DELETION and op.text2]


def compute_distance(ops: Sequence[EditOperation], granularity: Granularity) -> int:
    """
    Edit distance implied by an edit script.

    CHARACTER: Levenshtein distance between the reconstructed texts.
    WORD: deleted plus inserted words, plus one per substituted word.
    """
    if granularity == Granularity.CHARACTER:
        return levenshtein_distance("".join(text1_side(ops)), "".join(text2_side(ops)))

    distance = 0
    for op in ops:
        if op.kind == OpKind.DELETION:
            distance += len(op.text1.split())
        elif op.kind == OpKind.INSERTION:
            distance += len(op.text2.split())
        elif op.kind == OpKind.SUBSTITUTION:
            distance += 1
    return distance
