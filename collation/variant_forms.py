"""
Variant-form lookup tables for historical and typographic spelling conventions.

Tables are ordered: the normalizer applies entries in the order listed, and
the variant analyzer reports tallies in the same order.

- LOGOGRAMS: abbreviation signs expanded to their words (& -> and)
- LIGATURES: joined letters split into their components (æ -> ae)
- ARCHAIC_LETTERS: obsolete letter shapes modernized (ſ -> s)
- UVW_FORMS: doubled u/v written for w (vv -> w)
"""

import re
from typing import Dict


LOGOGRAMS: Dict[str, str] = {
    '&': 'and',
    '⁊': 'et',    # ⁊ Tironian et
    'ꝑ': 'per',   # ꝑ p with stroke through descender
    'ꝓ': 'pro',   # ꝓ p with flourish
    'ꝗ': 'que',   # ꝗ q with stroke through descender
    'ꝯ': 'con',   # ꝯ con
}

LIGATURES: Dict[str, str] = {
    'Æ': 'AE',    # Æ
    'æ': 'ae',    # æ
    'Œ': 'OE',    # Œ
    'œ': 'oe',    # œ
    'Ĳ': 'IJ',    # Ĳ
    'ĳ': 'ij',    # ĳ
    'ﬀ': 'ff',    # ﬀ
    'ﬁ': 'fi',    # ﬁ
    'ﬂ': 'fl',    # ﬂ
    'ﬃ': 'ffi',   # ﬃ
    'ﬄ': 'ffl',   # ﬄ
    'ﬅ': 'st',    # ﬅ long s + t
    'ﬆ': 'st',    # ﬆ
}

ARCHAIC_LETTERS: Dict[str, str] = {
    'ſ': 's',     # ſ long s
    'ꝛ': 'r',     # ꝛ r rotunda
}

UVW_FORMS: Dict[str, str] = {
    'uu': 'w',
    'UU': 'W',
    'Uu': 'W',
    'uU': 'W',
    'vv': 'w',
    'VV': 'W',
    'Vv': 'W',
    'vV': 'W',
}

ALL_VARIANT_FORMS: Dict[str, str] = {
    **LOGOGRAMS,
    **LIGATURES,
    **ARCHAIC_LETTERS,
    **UVW_FORMS,
}

PUNCTUATION_RE = re.compile(r"""[.,/#!?$%\\^&*;:{}=\-_`~()'"\[\]<>|¡¿†‡…–—]""")


def replace_all(text: str, table: Dict[str, str]) -> str:
    """Literal, non-overlapping find/replace of every table entry, in table order."""
    for form, expansion in table.items():
        if form in text:
            text = text.replace(form, expansion)
    return text
