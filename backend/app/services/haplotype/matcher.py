"""
Named Allele Matcher - assigns haplotypes and diplotype candidates per gene.

Pipeline for one gene of one sample:
  1. Align sample calls with the gene's curated positions.
  2. Drop calls the sample has no data for from each definition (copies).
  3. Expand the sample into permutations (one per hypothesized chromosome).
  4. Test every permutation against every definition pattern.
  5. Synthesize combination/partial calls for unexplained permutations.
  6. Score, rank and pair the matched definitions. Curated copies a partial
     call stands in for, and non-reference matches with no sample-adjusted
     score, are left out.

Genes are independent, so a sample is matched with one task per gene on a
thread pool. Results are always keyed and sorted so output never depends on
completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .combinations import component_ids, core_positions, deviating_positions, synthesize_all
from .config import MatcherConfig, get_matcher_config
from .definition import HaplotypeDefinition, with_missing_positions
from .exceptions import CombinatorialLimitExceeded, SampleDataError
from .loader import DefinitionRepository, GeneDefinitionSet
from .models import Position, SampleCall
from .pairs import DiplotypeCandidate, generate_perfect_pairs
from .pattern import find_matching
from .permutations import SamplePermutation, generate_permutations
from .scoring import score_for_sample

logger = logging.getLogger(__name__)

UNSUPPORTED_GENE = "unsupported gene"


@dataclass(frozen=True)
class MatchResult:
    """A definition together with the sample permutations it matched."""
    definition: HaplotypeDefinition
    permutations: FrozenSet[SamplePermutation]
    score: int

    @property
    def name(self) -> str:
        return self.definition.name


@dataclass
class GeneMatchResult:
    """Everything the matcher decided for one gene of one sample."""
    gene: str
    matches: List[MatchResult] = field(default_factory=list)
    diplotypes: List[DiplotypeCandidate] = field(default_factory=list)
    combinations: List[HaplotypeDefinition] = field(default_factory=list)
    permutation_count: int = 0
    missing_positions: List[Position] = field(default_factory=list)
    sample_alleles: Dict[str, List[str]] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def haplotypes(self) -> List[HaplotypeDefinition]:
        return [m.definition for m in self.matches]

    @property
    def has_curated_call(self) -> bool:
        return any(not m.definition.is_synthetic for m in self.matches)

    @property
    def top_diplotypes(self) -> List[DiplotypeCandidate]:
        """Candidates sharing the highest score, in canonical order."""
        if not self.diplotypes:
            return []
        best = max(d.score for d in self.diplotypes)
        return [d for d in self.diplotypes if d.score == best]

    def to_dict(self) -> Dict[str, object]:
        return {
            "gene": self.gene,
            "haplotypes": [
                {
                    "name": m.definition.name,
                    "id": m.definition.id,
                    "score": m.score,
                    "is_reference": m.definition.is_reference,
                    "num_combinations": m.definition.num_combinations,
                    "num_partials": m.definition.num_partials,
                    "missing_positions": [
                        str(m.definition.positions[i]) for i in sorted(m.definition.missing_positions)
                    ],
                }
                for m in self.matches
            ],
            "diplotypes": [{"label": d.label, "score": d.score} for d in self.diplotypes],
            "combinations": [d.name for d in self.combinations],
            "permutation_count": self.permutation_count,
            "missing_positions": [str(p) for p in self.missing_positions],
            "sample_alleles": self.sample_alleles,
            "error": self.error,
        }


@dataclass
class SampleMatchResult:
    sample_id: str
    genes: Dict[str, GeneMatchResult] = field(default_factory=dict)
    failed_genes: Dict[str, str] = field(default_factory=dict)


class NamedAlleleMatcher:
    """Matches sample calls against curated haplotype definitions."""

    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or get_matcher_config()

    # ===== Single gene =====

    def match_gene(
        self,
        definition_set: GeneDefinitionSet,
        sample_calls: Sequence[SampleCall],
    ) -> GeneMatchResult:
        """
        Match one gene's sample calls.

        Raises SampleDataError if the calls are not aligned with the gene's
        positions and CombinatorialLimitExceeded if the sample has too many
        unphased heterozygous positions.
        """
        gene = definition_set.gene
        self._check_alignment(definition_set, sample_calls)

        missing = frozenset(i for i, c in enumerate(sample_calls) if c.is_missing)
        definitions = self._prepare_definitions(definition_set, missing)

        permutations = sorted(generate_permutations(
            sample_calls, self.config.max_unphased_heterozygous, gene=gene,
        ))
        matched = self._match_definitions(definitions, permutations)

        combinations: List[HaplotypeDefinition] = []
        if self.config.find_combinations:
            unresolved = self._unresolved_permutations(
                definition_set.reference, permutations, matched,
            )
            if unresolved:
                known = {d for d, _ in matched}
                for combo in synthesize_all(
                    definition_set.definitions, definition_set.reference, unresolved,
                ):
                    if combo in known:
                        continue
                    hits = find_matching(combo, permutations)
                    if hits:
                        combinations.append(combo)
                        matched.append((combo, hits))
                matched = self._drop_superseded(matched, combinations)

        matches = [
            MatchResult(d, frozenset(perms), score_for_sample(d, perms))
            for d, perms in matched
        ]
        # non-reference matches need sample evidence beyond reference
        matches = [m for m in matches if m.score > 0 or m.definition.is_reference]
        matches.sort(key=lambda m: (-m.score, m.definition.sort_key))
        diplotypes = generate_perfect_pairs(
            [m.definition for m in matches],
            scores={m.definition: m.score for m in matches},
        )

        result = GeneMatchResult(
            gene=gene,
            matches=matches,
            diplotypes=diplotypes,
            combinations=combinations,
            permutation_count=len(permutations),
            missing_positions=[definition_set.positions[i] for i in sorted(missing)],
            sample_alleles={
                str(p): list(c.vcf_alleles) for p, c in zip(definition_set.positions, sample_calls)
            },
        )
        level = logging.INFO if self.config.verbose_logging else logging.DEBUG
        logger.log(
            level,
            "%s: %d permutations, %d haplotypes matched (%d synthesized), %d diplotypes",
            gene, len(permutations), len(matches), len(combinations), len(diplotypes),
        )
        return result

    @staticmethod
    def _check_alignment(definition_set: GeneDefinitionSet, sample_calls: Sequence[SampleCall]):
        positions = definition_set.positions
        if len(sample_calls) != len(positions):
            raise SampleDataError(
                f"{definition_set.gene}: expected {len(positions)} sample calls, got {len(sample_calls)}"
            )
        for position, call in zip(positions, sample_calls):
            if call.position != position.position or call.chromosome != position.chromosome:
                raise SampleDataError(
                    f"{definition_set.gene}: sample call {call.chromosome}:{call.position} "
                    f"does not align with {position.key}"
                )

    @staticmethod
    def _prepare_definitions(
        definition_set: GeneDefinitionSet,
        missing: FrozenSet[int],
    ) -> List[HaplotypeDefinition]:
        """Copies of the curated definitions without the sample's missing positions."""
        if not missing:
            return list(definition_set.definitions)
        prepared = []
        for definition in definition_set.definitions:
            drop = missing.intersection(definition.defined_positions)
            if drop:
                definition = with_missing_positions(definition, drop)
                if not definition.is_reference and not definition.defined_positions:
                    # nothing left to distinguish it
                    continue
            prepared.append(definition)
        return prepared

    def _match_definitions(
        self,
        definitions: Sequence[HaplotypeDefinition],
        permutations: Sequence[SamplePermutation],
    ) -> List[Tuple[HaplotypeDefinition, Set[SamplePermutation]]]:
        workers = self.config.definition_workers
        if workers > 1 and len(definitions) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                hits = list(executor.map(lambda d: find_matching(d, permutations), definitions))
        else:
            hits = [find_matching(d, permutations) for d in definitions]
        return [(d, perms) for d, perms in zip(definitions, hits) if perms]

    @staticmethod
    def _drop_superseded(
        matched: List[Tuple[HaplotypeDefinition, Set[SamplePermutation]]],
        combinations: Iterable[HaplotypeDefinition],
    ) -> List[Tuple[HaplotypeDefinition, Set[SamplePermutation]]]:
        """Remove curated copies with missing data that a partial call replaces."""
        replaced = set()
        for combo in combinations:
            if combo.is_partial:
                replaced |= component_ids(combo)
        if not replaced:
            return matched
        return [
            (d, perms) for d, perms in matched
            if d.is_synthetic or not d.missing_positions or d.id not in replaced
        ]

    @staticmethod
    def _unresolved_permutations(
        reference: HaplotypeDefinition,
        permutations: Sequence[SamplePermutation],
        matched: Iterable[Tuple[HaplotypeDefinition, Set[SamplePermutation]]],
    ) -> List[SamplePermutation]:
        """
        Permutations without an exact curated explanation.

        A permutation is explained by a matched definition that has data at all
        of its positions and whose distinguishing calls cover every position
        where the permutation deviates from reference.
        """
        complete = [
            (core_positions(d, reference), perms)
            for d, perms in matched
            if not d.missing_positions
        ]
        unresolved = []
        for permutation in permutations:
            deviations = deviating_positions(reference, permutation)
            if not any(permutation in perms and deviations <= core for core, perms in complete):
                unresolved.append(permutation)
        return unresolved

    # ===== Whole sample =====

    def match_sample(
        self,
        sample_id: str,
        calls_by_gene: Mapping[str, Sequence[SampleCall]],
        repository: DefinitionRepository,
    ) -> SampleMatchResult:
        """
        Match every gene of one sample, one pool task per gene.

        A gene over the combinatorial limit is reported as failed without
        affecting the others; genes without definitions are reported as
        unsupported.
        """
        result = SampleMatchResult(sample_id=sample_id)
        tasks = {}
        for gene in sorted(calls_by_gene):
            if gene not in repository:
                logger.warning("%s: no definitions for %s, skipping", sample_id, gene)
                result.failed_genes[gene] = UNSUPPORTED_GENE
                continue
            tasks[gene] = (repository.get(gene), calls_by_gene[gene])

        gene_results: Dict[str, GeneMatchResult] = {}
        if tasks:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = {
                    executor.submit(self._match_gene_isolated, sample_id, ds, calls): gene
                    for gene, (ds, calls) in tasks.items()
                }
                for future in as_completed(futures):
                    gene_results[futures[future]] = future.result()

        for gene in sorted(gene_results):
            gene_result = gene_results[gene]
            result.genes[gene] = gene_result
            if gene_result.error:
                result.failed_genes[gene] = gene_result.error
        result.failed_genes = dict(sorted(result.failed_genes.items()))
        return result

    def _match_gene_isolated(
        self,
        sample_id: str,
        definition_set: GeneDefinitionSet,
        calls: Sequence[SampleCall],
    ) -> GeneMatchResult:
        try:
            return self.match_gene(definition_set, calls)
        except CombinatorialLimitExceeded as e:
            logger.warning("%s: %s", sample_id, e)
            return GeneMatchResult(gene=definition_set.gene, error=str(e))


def match_gene(
    definition_set: GeneDefinitionSet,
    sample_calls: Sequence[SampleCall],
    config: Optional[MatcherConfig] = None,
) -> GeneMatchResult:
    return NamedAlleleMatcher(config).match_gene(definition_set, sample_calls)


def match_sample(
    sample_id: str,
    calls_by_gene: Mapping[str, Sequence[SampleCall]],
    repository: DefinitionRepository,
    config: Optional[MatcherConfig] = None,
) -> SampleMatchResult:
    return NamedAlleleMatcher(config).match_sample(sample_id, calls_by_gene, repository)
