"""
Sequence diff primitive.

Produces an ordered edit script of (op, chunk) pairs over either a string
(character units) or any sequence of hashable tokens (word units). Token
input is diffed natively, so word-level comparison needs no token-to-code
point bridge.

Ops:
- DIFF_EQUAL  (0):  chunk present in both sequences
- DIFF_DELETE (-1): chunk present only in the first sequence
- DIFF_INSERT (1):  chunk present only in the second sequence

Chunks are `str` for string input and `tuple` for token input, so chunks of
the same kind always concatenate with `+`.
"""

import logging
import time
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import List, Sequence, Tuple, Union

from .errors import DiffTimeoutError


DIFF_DELETE = -1
DIFF_INSERT = 1
DIFF_EQUAL = 0

Chunk = Union[str, Tuple]
DiffOp = Tuple[int, Chunk]

log = logging.getLogger("collation.diff")


@dataclass(frozen=True)
class DiffSettings:
    """
    Tuning for the diff primitive.

    timeout: seconds a single diff may take; 0 disables the check
    semantic_cleanup: merge short equalities into surrounding edits for
        character diffs
    """
    timeout: float = 0.0
    semantic_cleanup: bool = True

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "timeout": self.timeout,
            "semantic_cleanup": self.semantic_cleanup,
        }


def _as_chunk(seq: Sequence) -> Chunk:
    return seq if isinstance(seq, str) else tuple(seq)


def _common_prefix_length(a: Chunk, b: Chunk) -> int:
    n = min(len(a), len(b))
    for i in range(n):
        if a[i] != b[i]:
            return i
    return n


def _common_suffix_length(a: Chunk, b: Chunk) -> int:
    n = min(len(a), len(b))
    for i in range(1, n + 1):
        if a[-i] != b[-i]:
            return i - 1
    return n


class SequenceDiffer:
    """
    Longest-matching-block diff over strings or token sequences.

    Matching is literal (exact element equality, junk heuristics off), which
    keeps boundaries exact for both display diffs and variant tallies.
    """

    def __init__(self, settings: DiffSettings = None):
        self.settings = settings or DiffSettings()

    def diff_main(self, a: Sequence, b: Sequence) -> List[DiffOp]:
        """
        Diff two sequences.

        Returns:
            Ordered list of (op, chunk). A replaced block is emitted as a
            delete followed by an insert.

        Raises:
            DiffTimeoutError: if the diff exceeded settings.timeout
        """
        a = _as_chunk(a)
        b = _as_chunk(b)

        if a == b:
            return [(DIFF_EQUAL, a)] if a else []

        started = time.monotonic()
        matcher = SequenceMatcher(None, a, b, autojunk=False)
        opcodes = matcher.get_opcodes()
        elapsed = time.monotonic() - started

        timeout = self.settings.timeout
        if timeout and elapsed > timeout:
            raise DiffTimeoutError(elapsed, timeout)

        diffs: List[DiffOp] = []
        for tag, i1, i2, j1, j2 in opcodes:
            if tag == "equal":
                diffs.append((DIFF_EQUAL, a[i1:i2]))
            elif tag == "delete":
                diffs.append((DIFF_DELETE, a[i1:i2]))
            elif tag == "insert":
                diffs.append((DIFF_INSERT, b[j1:j2]))
            else:
                diffs.append((DIFF_DELETE, a[i1:i2]))
                diffs.append((DIFF_INSERT, b[j1:j2]))

        log.debug("diff_main: %d vs %d units -> %d ops in %.4fs",
                  len(a), len(b), len(diffs), elapsed)
        return [(op, chunk) for op, chunk in diffs if chunk]

    def cleanup_semantic(self, diffs: List[DiffOp]) -> List[DiffOp]:
        """
        Eliminate semantically trivial equalities.

        An equality sandwiched between edits is folded into them when it is
        no longer than the edits on either side: "cat" -> "cot" keeps its
        equal "c" and "t", while "ab" -> "xby" becomes one delete/insert pair
        instead of two edits around a lone shared "b".
        """
        diffs = list(diffs)
        changed = False
        equalities: List[int] = []
        last_equality = None
        pointer = 0
        ins_before = del_before = 0
        ins_after = del_after = 0

        while pointer < len(diffs):
            op, chunk = diffs[pointer]
            if op == DIFF_EQUAL:
                equalities.append(pointer)
                ins_before, ins_after = ins_after, 0
                del_before, del_after = del_after, 0
                last_equality = chunk
            else:
                if op == DIFF_INSERT:
                    ins_after += len(chunk)
                else:
                    del_after += len(chunk)
                if (last_equality
                        and len(last_equality) <= max(ins_before, del_before)
                        and len(last_equality) <= max(ins_after, del_after)):
                    index = equalities[-1]
                    diffs[index] = (DIFF_DELETE, last_equality)
                    diffs.insert(index + 1, (DIFF_INSERT, last_equality))
                    equalities.pop()
                    if equalities:
                        equalities.pop()
                    pointer = equalities[-1] if equalities else -1
                    ins_before = del_before = 0
                    ins_after = del_after = 0
                    last_equality = None
                    changed = True
            pointer += 1

        if changed:
            log.debug("cleanup_semantic: folded equalities, %d ops before merge", len(diffs))
        return self.cleanup_merge(diffs)

    def cleanup_merge(self, diffs: List[DiffOp]) -> List[DiffOp]:
        """
        Coalesce adjacent edits and equalities.

        Within every run of edits between two equalities, deletions are
        emitted before insertions and any common prefix/suffix of the
        deleted and inserted chunks is moved out into the neighbouring
        equalities. Empty chunks are dropped.
        """
        merged: List[List] = []
        run_delete = None
        run_insert = None

        def flush():
            nonlocal run_delete, run_insert
            deleted, inserted = run_delete, run_insert
            run_delete = run_insert = None
            if deleted and inserted:
                prefix = _common_prefix_length(deleted, inserted)
                if prefix:
                    _append_equal(merged, deleted[:prefix])
                    deleted, inserted = deleted[prefix:], inserted[prefix:]
                suffix = _common_suffix_length(deleted, inserted)
                if suffix:
                    tail = deleted[len(deleted) - suffix:]
                    deleted = deleted[:len(deleted) - suffix]
                    inserted = inserted[:len(inserted) - suffix]
                else:
                    tail = None
            else:
                tail = None
            if deleted:
                merged.append([DIFF_DELETE, deleted])
            if inserted:
                merged.append([DIFF_INSERT, inserted])
            if tail:
                _append_equal(merged, tail)

        for op, chunk in diffs:
            if not chunk:
                continue
            if op == DIFF_DELETE:
                run_delete = chunk if run_delete is None else run_delete + chunk
            elif op == DIFF_INSERT:
                run_insert = chunk if run_insert is None else run_insert + chunk
            else:
                flush()
                _append_equal(merged, chunk)
        flush()

        return [(op, chunk) for op, chunk in merged]


def _append_equal(merged: List[List], chunk: Chunk):
    if merged and merged[-1][0] == DIFF_EQUAL:
        merged[-1][1] = merged[-1][1] + chunk
    else:
        merged.append([DIFF_EQUAL, chunk])
