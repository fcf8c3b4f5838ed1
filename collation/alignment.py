"""
Character alignment.

Expands a character-level edit script into position-aligned glyph pairs,
in text1 order. A side with no glyph at that position is ABSENT (None),
which never equals a real glyph.
"""

from typing import List, NamedTuple, Optional, Sequence

from .edit_script import EditOperation, OpKind


ABSENT = None


class AlignmentPair(NamedTuple):
    char1: Optional[str]
    char2: Optional[str]


def build_character_alignment(ops: Sequence[EditOperation]) -> List[AlignmentPair]:
    """
    Equal(L chars)      -> L pairs (c, c)
    Substitution(a, b)  -> max(|a|, |b|) pairs, shorter side padded with ABSENT
    Deletion(t)         -> (c, ABSENT) per char
    Insertion(t)        -> (ABSENT, c) per char
    """
    pairs: List[AlignmentPair] = []
    for op in ops:
        if op.kind == OpKind.EQUAL:
            pairs.extend(AlignmentPair(c, c) for c in op.text1)
        elif op.kind == OpKind.SUBSTITUTION:
            t1, t2 = op.text1, op.text2
            for k in range(max(len(t1), len(t2))):
                pairs.append(AlignmentPair(
                    t1[k] if k < len(t1) else ABSENT,
                    t2[k] if k < len(t2) else ABSENT,
                ))
        elif op.kind == OpKind.DELETION:
            pairs.extend(AlignmentPair(c, ABSENT) for c in op.text1)
        elif op.kind == OpKind.INSERTION:
            pairs.extend(AlignmentPair(ABSENT, c) for c in op.text2)
    return pairs
