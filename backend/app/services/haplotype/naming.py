"""
Natural ordering for haplotype names.

Star-allele names embed numbers ("*2", "*10", "*4.001", "*1x2"), so plain
string order puts "*10" before "*9". Digit runs are compared as numbers and
everything else case-insensitively; the raw name breaks remaining ties so the
order stays strict.
"""

import re
from typing import Tuple

_RUN_RE = re.compile(r"(\d+)")


def natural_key(name: str) -> Tuple:
    parts = []
    for idx, run in enumerate(_RUN_RE.split(name)):
        if not run:
            continue
        if idx % 2:
            parts.append((0, int(run), ""))
        else:
            parts.append((1, 0, run.lower()))
    return tuple(parts), name


def compare_names(a: str, b: str) -> int:
    """Comparator form of natural_key: -1, 0 or 1."""
    ka, kb = natural_key(a), natural_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0
