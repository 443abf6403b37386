"""
Combination / partial-call synthesizer.

When a permutation deviates from reference in a way no curated definition
explains, build a transient definition that describes the deviation: curated
alleles whose distinguishing calls are all present are merged with
standalone ``g.<pos><ref>><alt>`` calls for whatever is left over.

Curated components whose distinguishing positions the sample is missing data
for are still usable; each unresolved position counts as a partial and is
subtracted from the synthesized definition's score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence, Set

from .definition import HaplotypeDefinition, build_definition
from .models import NamedAllele
from .permutations import SamplePermutation

logger = logging.getLogger(__name__)

SYNTHETIC_PREFIX = "synthetic:"


@dataclass(frozen=True)
class _Component:
    definition: HaplotypeDefinition
    observed_core: FrozenSet[int]
    missing_core: FrozenSet[int]


def deviating_positions(
    reference: HaplotypeDefinition,
    permutation: SamplePermutation,
) -> FrozenSet[int]:
    """Indices where the permutation has an observed, non-reference call."""
    return frozenset(
        i for i, call in enumerate(permutation.calls)
        if call is not None and call != reference.alleles[i]
    )


def core_positions(
    definition: HaplotypeDefinition,
    reference: HaplotypeDefinition,
) -> FrozenSet[int]:
    """Positions where ``definition`` calls something other than reference."""
    return frozenset(
        i for i, allele in enumerate(definition.alleles)
        if allele is not None and allele != reference.alleles[i]
    )


def component_ids(definition: HaplotypeDefinition) -> FrozenSet[str]:
    """Ids of the curated alleles and mini-calls a synthesized definition joins."""
    if not definition.id.startswith(SYNTHETIC_PREFIX):
        return frozenset()
    return frozenset(definition.id[len(SYNTHETIC_PREFIX):].split("+"))


def _components(
    curated: Iterable[HaplotypeDefinition],
    reference: HaplotypeDefinition,
    permutation: SamplePermutation,
    deviations: FrozenSet[int],
) -> List[_Component]:
    found = []
    for definition in curated:
        if definition.is_reference:
            continue
        core = core_positions(definition, reference)
        missing = frozenset(i for i in core if permutation.calls[i] is None)
        observed = core - missing
        if not observed or not observed <= deviations:
            continue
        if not all(definition.pattern.accepts(i, permutation.calls[i]) for i in observed):
            continue
        found.append(_Component(definition, observed, missing))
    found.sort(key=lambda c: (-len(c.observed_core), len(c.missing_core), c.definition.sort_key))
    return found


def synthesize(
    curated: Sequence[HaplotypeDefinition],
    reference: HaplotypeDefinition,
    permutation: SamplePermutation,
) -> Optional[HaplotypeDefinition]:
    """
    Derived definition for ``permutation``, or None when it matches reference
    everywhere it was observed or a single complete curated allele already
    describes it.
    """
    deviations = deviating_positions(reference, permutation)
    if not deviations:
        return None

    chosen: List[_Component] = []
    covered: Set[int] = set()
    for component in _components(curated, reference, permutation, deviations):
        if component.observed_core & covered:
            continue
        chosen.append(component)
        covered |= component.observed_core
    leftovers = sorted(deviations - covered)

    num_partials = sum(len(c.missing_core) for c in chosen)
    num_combinations = len(chosen) + len(leftovers)
    if num_combinations == 1 and not leftovers and not num_partials:
        return None

    positions = reference.positions
    # only deviations and unresolved component calls are defined
    alleles: List[Optional[str]] = [None] * len(positions)
    for idx in deviations:
        alleles[idx] = permutation.calls[idx]
    for component in chosen:
        for idx in component.missing_core:
            alleles[idx] = component.definition.alleles[idx]
    sample_missing = frozenset(i for i, call in enumerate(permutation.calls) if call is None)

    chosen.sort(key=lambda c: c.definition.sort_key)
    names = [c.definition.name for c in chosen]
    ids = [c.definition.id for c in chosen]
    for idx in leftovers:
        mini = f"g.{positions[idx].position}{reference.alleles[idx]}>{permutation.calls[idx]}"
        names.append(mini)
        ids.append(mini)
    name = names[0] if num_combinations == 1 else "[" + " + ".join(names) + "]"

    logger.debug(
        "Synthesized %s from %s (%d combinations, %d partials)",
        name, permutation, num_combinations, num_partials,
    )
    return build_definition(
        NamedAllele(
            id=SYNTHETIC_PREFIX + "+".join(ids),
            name=name,
            alleles=tuple(alleles),
            cpic_alleles=tuple(alleles),
            reference=False,
            missing_positions=sample_missing,
            num_combinations=num_combinations,
            num_partials=num_partials,
        ),
        positions,
    )


def synthesize_all(
    curated: Sequence[HaplotypeDefinition],
    reference: HaplotypeDefinition,
    permutations: Iterable[SamplePermutation],
) -> List[HaplotypeDefinition]:
    """Distinct synthesized definitions for ``permutations``, canonical order."""
    found: Set[HaplotypeDefinition] = set()
    for permutation in permutations:
        definition = synthesize(curated, reference, permutation)
        if definition is not None:
            found.add(definition)
    return sorted(found)
