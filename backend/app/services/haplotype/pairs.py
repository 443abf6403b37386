"""
Diplotype assembly: every unordered pair of matched haplotypes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .definition import HaplotypeDefinition


@dataclass(frozen=True, order=False)
class DiplotypeCandidate:
    allele1: HaplotypeDefinition
    allele2: HaplotypeDefinition
    score: int = field(default=0, compare=False)

    def __post_init__(self):
        if self.allele2 < self.allele1:
            first, second = self.allele2, self.allele1
            object.__setattr__(self, "allele1", first)
            object.__setattr__(self, "allele2", second)

    @property
    def label(self) -> str:
        return f"{self.allele1.name}/{self.allele2.name}"

    @property
    def is_homozygous(self) -> bool:
        return self.allele1 == self.allele2

    @property
    def sort_key(self) -> tuple:
        return self.allele1.sort_key, self.allele2.sort_key

    def __str__(self) -> str:
        return self.label


def generate_perfect_pairs(
    haplotypes: Iterable[HaplotypeDefinition],
    scores: Optional[Dict[HaplotypeDefinition, int]] = None,
) -> List[DiplotypeCandidate]:
    """
    All n(n+1)/2 pairs over the distinct ``haplotypes``, self-pairs included.

    ``scores`` overrides each haplotype's base score (e.g. with the
    sample-adjusted score); a pair scores the sum of its two haplotypes.
    """
    ordered = sorted(set(haplotypes))
    scores = scores or {}
    pairs: List[DiplotypeCandidate] = []
    for i, first in enumerate(ordered):
        for second in ordered[i:]:
            pairs.append(DiplotypeCandidate(
                first,
                second,
                score=scores.get(first, first.score) + scores.get(second, second.score),
            ))
    return pairs


def rank_diplotypes(candidates: Iterable[DiplotypeCandidate]) -> List[DiplotypeCandidate]:
    """Highest score first; ties keep canonical order."""
    return sorted(candidates, key=lambda c: (-c.score, c.sort_key))
