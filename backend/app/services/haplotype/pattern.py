"""
Per-position match patterns for haplotype definitions.

A pattern is a tuple of predicates aligned with the gene's positions. Each
predicate is either None (the definition does not distinguish at that
position, so anything matches) or the frozenset of calls it accepts.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Sequence, Set, Tuple

from . import iupac


@dataclass(frozen=True)
class AllelePattern:
    predicates: Tuple[Optional[FrozenSet[str]], ...]

    def __len__(self) -> int:
        return len(self.predicates)

    def accepts(self, idx: int, call: Optional[str]) -> bool:
        """Test a single position. A None call is a sample wildcard."""
        predicate = self.predicates[idx]
        return predicate is None or call is None or call in predicate

    def matches(self, calls: Sequence[Optional[str]]) -> bool:
        """Full alignment: one mismatching position disqualifies."""
        if len(calls) != len(self.predicates):
            return False
        for predicate, call in zip(self.predicates, calls):
            if predicate is None or call is None:
                continue
            if call not in predicate:
                return False
        return True


def compile_pattern(alleles: Sequence[Optional[str]]) -> AllelePattern:
    return AllelePattern(tuple(
        None if allele is None else iupac.expand(allele)
        for allele in alleles
    ))


def find_matching(definition, permutations: Iterable) -> Set:
    """Subset of ``permutations`` whose calls match ``definition.pattern``."""
    pattern = definition.pattern
    return {p for p in permutations if pattern.matches(p.calls)}
