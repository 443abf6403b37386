"""
Sample permutation generator.

Expands a sample's per-position calls into the candidate allele sequences
that could make up one chromosome copy:

  - phased heterozygous positions split across two fixed threads;
  - unphased heterozygous positions branch, doubling the candidates;
  - homozygous and hemizygous positions contribute one call;
  - missing positions contribute a wildcard.

Growth is exponential in the number of unphased heterozygous positions, so
that count is checked against a ceiling before anything is generated.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from .exceptions import CombinatorialLimitExceeded
from .models import SampleCall

WILDCARD_TOKEN = "."


@dataclass(frozen=True, eq=False)
class SamplePermutation:
    """One hypothesized chromosome copy; None calls are wildcards."""
    positions: Tuple[int, ...]
    calls: Tuple[Optional[str], ...]
    key: str = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "key", "".join(
            f"{pos}:{WILDCARD_TOKEN if call is None else call};"
            for pos, call in zip(self.positions, self.calls)
        ))

    def call_at(self, idx: int) -> Optional[str]:
        return self.calls[idx]

    def __eq__(self, other) -> bool:
        if not isinstance(other, SamplePermutation):
            return NotImplemented
        return self.key == other.key

    def __lt__(self, other: "SamplePermutation") -> bool:
        return self.key < other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.key


def count_unphased_heterozygous(calls: Sequence[SampleCall]) -> int:
    return sum(1 for c in calls if c.is_heterozygous and not c.phased)


def iter_permutations(
    calls: Sequence[SampleCall],
    max_unphased_heterozygous: Optional[int] = None,
    gene: Optional[str] = None,
) -> Iterator[SamplePermutation]:
    """
    Lazily yield each distinct permutation once.

    Raises CombinatorialLimitExceeded up front if the number of unphased
    heterozygous positions is above ``max_unphased_heterozygous``.
    """
    h = count_unphased_heterozygous(calls)
    if max_unphased_heterozygous is not None and h > max_unphased_heterozygous:
        raise CombinatorialLimitExceeded(h, max_unphased_heterozygous, gene=gene)
    return _generate(calls)


def _generate(calls: Sequence[SampleCall]) -> Iterator[SamplePermutation]:
    positions = tuple(c.position for c in calls)
    # per position: fixed call, phased (thread0, thread1) slot, or unphased branch
    fixed: List[Optional[str]] = []
    phased_slots: List[int] = []
    branch_slots: List[int] = []
    for idx, call in enumerate(calls):
        if call.is_missing:
            fixed.append(None)
        elif not call.is_heterozygous:
            fixed.append(call.allele1)
        elif call.phased:
            fixed.append(None)
            phased_slots.append(idx)
        else:
            fixed.append(None)
            branch_slots.append(idx)

    threads = (0, 1) if phased_slots else (0,)
    seen: Set[str] = set()
    for thread in threads:
        base = list(fixed)
        for idx in phased_slots:
            base[idx] = calls[idx].allele1 if thread == 0 else calls[idx].allele2
        choices = [(calls[idx].allele1, calls[idx].allele2) for idx in branch_slots]
        for combo in itertools.product(*choices):
            seq = list(base)
            for idx, allele in zip(branch_slots, combo):
                seq[idx] = allele
            permutation = SamplePermutation(positions, tuple(seq))
            if permutation.key in seen:
                continue
            seen.add(permutation.key)
            yield permutation


def generate_permutations(
    calls: Sequence[SampleCall],
    max_unphased_heterozygous: Optional[int] = None,
    gene: Optional[str] = None,
) -> Set[SamplePermutation]:
    return set(iter_permutations(calls, max_unphased_heterozygous, gene=gene))
