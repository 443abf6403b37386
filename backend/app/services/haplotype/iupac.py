"""
IUPAC nucleotide ambiguity codes.

Curated definitions use these codes at "wobble" positions, where more than one
base is consistent with the named allele.
"""

from typing import Dict, FrozenSet, Optional

IUPAC_CODES: Dict[str, FrozenSet[str]] = {
    "A": frozenset("A"),
    "C": frozenset("C"),
    "G": frozenset("G"),
    "T": frozenset("T"),
    "U": frozenset("T"),
    "R": frozenset("AG"),
    "Y": frozenset("CT"),
    "S": frozenset("GC"),
    "W": frozenset("AT"),
    "K": frozenset("GT"),
    "M": frozenset("AC"),
    "B": frozenset("CGT"),
    "D": frozenset("AGT"),
    "H": frozenset("ACT"),
    "V": frozenset("ACG"),
    "N": frozenset("ACGT"),
}

_BASES = frozenset("ACGT")


def lookup(code: str) -> Optional[FrozenSet[str]]:
    """Bases represented by a single-letter code, or None for anything else."""
    if len(code) != 1:
        return None
    return IUPAC_CODES.get(code.upper())


def is_wobble(allele: Optional[str]) -> bool:
    """True for a single-letter code that stands for more than one base."""
    if allele is None:
        return False
    bases = lookup(allele)
    return bases is not None and len(bases) > 1


def expand(allele: str) -> FrozenSet[str]:
    """
    Set of concrete calls an allele accepts.

    Ambiguity codes expand to their bases (and keep the code itself so a
    sample reporting the code still matches). Plain bases and multi-base
    alleles such as indels only accept themselves.
    """
    bases = lookup(allele)
    if bases is None or allele.upper() in _BASES:
        return frozenset([allele])
    return bases | {allele}
