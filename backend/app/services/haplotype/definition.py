"""
Initialized haplotype definitions.

``build_definition`` turns a raw NamedAllele into a HaplotypeDefinition with
every derived structure computed up front: the per-position lookups, wobble
positions, base score and compiled match pattern. The result is immutable and
safe to share across matching threads.

Definitions carry a canonical total order: the reference definition first,
then natural name order, then id, then the calls themselves so the order
agrees with equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple, Union

from . import iupac
from .exceptions import DefinitionIntegrityError
from .models import NamedAllele, Position
from .naming import natural_key
from .pattern import AllelePattern, compile_pattern


@total_ordering
@dataclass(frozen=True, eq=False)
class HaplotypeDefinition:
    id: str
    name: str
    alleles: Tuple[Optional[str], ...]
    cpic_alleles: Tuple[Optional[str], ...]
    is_reference: bool
    positions: Tuple[Position, ...] = field(repr=False)
    missing_positions: FrozenSet[int]
    wobble_positions: Tuple[int, ...]
    score: int
    pattern: AllelePattern = field(repr=False)
    num_combinations: int = 0
    num_partials: int = 0
    _allele_map: Dict[Position, Optional[str]] = field(default_factory=dict, repr=False)
    _cpic_allele_map: Dict[Position, Optional[str]] = field(default_factory=dict, repr=False)

    # -- lookups --

    def get_allele(self, position: Position) -> Optional[str]:
        return self._allele_map.get(position)

    def get_cpic_allele(self, position: Position) -> Optional[str]:
        return self._cpic_allele_map.get(position)

    @property
    def defined_positions(self) -> Tuple[int, ...]:
        return tuple(i for i, a in enumerate(self.alleles) if a is not None)

    @property
    def is_combination(self) -> bool:
        return self.num_combinations > 1

    @property
    def is_partial(self) -> bool:
        return self.num_partials > 0

    @property
    def is_synthetic(self) -> bool:
        return self.num_combinations > 0 or self.num_partials > 0

    # -- ordering & identity --

    @property
    def sort_key(self) -> tuple:
        return (
            not self.is_reference,
            natural_key(self.name),
            self.id,
            tuple(a or "" for a in self.alleles),
        )

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, HaplotypeDefinition):
            return NotImplemented
        return (
            self.name == other.name
            and self.id == other.id
            and self.alleles == other.alleles
        )

    def __lt__(self, other: "HaplotypeDefinition") -> bool:
        if not isinstance(other, HaplotypeDefinition):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __hash__(self) -> int:
        return hash((self.name, self.id, self.alleles))

    def __str__(self) -> str:
        return f"{self.name} [{self.id}]"

    def to_named_allele(self) -> NamedAllele:
        return NamedAllele(
            id=self.id,
            name=self.name,
            alleles=self.alleles,
            cpic_alleles=self.cpic_alleles,
            reference=self.is_reference,
            missing_positions=self.missing_positions,
            num_combinations=self.num_combinations,
            num_partials=self.num_partials,
        )


def build_definition(
    named_allele: NamedAllele,
    positions: Sequence[Position],
    gene: Optional[str] = None,
) -> HaplotypeDefinition:
    """
    Validate ``named_allele`` against the gene's positions and derive its
    lookups, wobbles, score and pattern.

    Raises DefinitionIntegrityError when the call lists are not aligned with
    the positions, or when a reference definition has an undefined call at a
    position it is not flagged as missing.
    """
    positions = tuple(positions)
    alleles = tuple(named_allele.alleles)
    cpic_alleles = tuple(named_allele.cpic_alleles) or alleles

    if len(alleles) != len(positions):
        raise DefinitionIntegrityError(
            f"Mismatch of variants for {named_allele}: {len(positions)} positions "
            f"but {len(alleles)} alleles",
            gene=gene,
        )
    if len(cpic_alleles) != len(positions):
        raise DefinitionIntegrityError(
            f"Mismatch of variants for {named_allele}: {len(positions)} positions "
            f"but {len(cpic_alleles)} normalized alleles",
            gene=gene,
        )
    bad = [i for i in named_allele.missing_positions if not 0 <= i < len(positions)]
    if bad:
        raise DefinitionIntegrityError(
            f"{named_allele} flags missing positions outside the gene: {sorted(bad)}",
            gene=gene,
        )
    if named_allele.reference:
        undefined = [
            str(positions[i]) for i, a in enumerate(alleles)
            if a is None and i not in named_allele.missing_positions
        ]
        if undefined:
            raise DefinitionIntegrityError(
                f"Reference {named_allele} has undefined calls at {', '.join(undefined)}",
                gene=gene,
            )

    wobbles = tuple(i for i, a in enumerate(alleles) if iupac.is_wobble(a))
    score = sum(1 for a in alleles if a is not None) - named_allele.num_partials

    return HaplotypeDefinition(
        id=named_allele.id,
        name=named_allele.name,
        alleles=alleles,
        cpic_alleles=cpic_alleles,
        is_reference=named_allele.reference,
        positions=positions,
        missing_positions=frozenset(named_allele.missing_positions),
        wobble_positions=wobbles,
        score=score,
        pattern=compile_pattern(alleles),
        num_combinations=named_allele.num_combinations,
        num_partials=named_allele.num_partials,
        _allele_map=dict(zip(positions, alleles)),
        _cpic_allele_map=dict(zip(positions, cpic_alleles)),
    )


def initialize(
    allele: Union[NamedAllele, HaplotypeDefinition],
    positions: Sequence[Position],
    gene: Optional[str] = None,
) -> HaplotypeDefinition:
    """Build ``allele`` unless it already is an initialized definition."""
    if isinstance(allele, HaplotypeDefinition):
        return allele
    return build_definition(allele, positions, gene=gene)


def with_missing_positions(
    definition: HaplotypeDefinition,
    indices: Iterable[int],
) -> HaplotypeDefinition:
    """
    Copy of ``definition`` for a sample without data at ``indices``.

    Calls at those positions are dropped, so they neither constrain matching
    nor count toward the score.
    """
    indices = frozenset(indices)
    if not indices:
        return definition
    alleles = tuple(None if i in indices else a for i, a in enumerate(definition.alleles))
    cpic_alleles = tuple(
        None if i in indices else a for i, a in enumerate(definition.cpic_alleles)
    )
    copy = definition.to_named_allele().model_copy(update={
        "alleles": alleles,
        "cpic_alleles": cpic_alleles,
        "missing_positions": definition.missing_positions | indices,
    })
    return build_definition(copy, definition.positions)
