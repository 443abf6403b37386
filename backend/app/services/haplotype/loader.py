"""
Definition Repository - curated positions and named alleles per gene.

Reads per-gene definition JSON files (``variants`` + ``namedAlleles``),
validates them and keeps fully built, immutable definition sets that every
matching run shares read-only.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from .definition import HaplotypeDefinition, build_definition
from .exceptions import DefinitionIntegrityError
from .models import NamedAllele, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneDefinitionSet:
    gene: str
    positions: Tuple[Position, ...]
    definitions: Tuple[HaplotypeDefinition, ...]
    reference: HaplotypeDefinition

    @classmethod
    def build(
        cls,
        gene: str,
        positions: Sequence[Position],
        named_alleles: Iterable[NamedAllele],
    ) -> "GeneDefinitionSet":
        """
        Validate and initialize every named allele for ``gene``.

        Raises DefinitionIntegrityError on misaligned call lists, undefined
        reference calls, duplicate ids, or anything other than exactly one
        reference definition.
        """
        positions = tuple(positions)
        if not positions:
            raise DefinitionIntegrityError(f"{gene} has no positions", gene=gene)

        definitions = [build_definition(na, positions, gene=gene) for na in named_alleles]

        references = [d for d in definitions if d.is_reference]
        if len(references) != 1:
            raise DefinitionIntegrityError(
                f"{gene} must have exactly one reference definition, found {len(references)}",
                gene=gene,
            )
        seen = set()
        for d in definitions:
            if d.id in seen:
                raise DefinitionIntegrityError(f"{gene} has duplicate definition id {d.id}", gene=gene)
            seen.add(d.id)

        return cls(
            gene=gene,
            positions=positions,
            definitions=tuple(sorted(definitions)),
            reference=references[0],
        )

    def get(self, name: str) -> Optional[HaplotypeDefinition]:
        """Find a definition by display name."""
        for d in self.definitions:
            if d.name == name:
                return d
        return None

    def __len__(self) -> int:
        return len(self.definitions)


class DefinitionRepository:
    """Curated definition sets keyed by gene symbol."""

    def __init__(self, definition_sets: Iterable[GeneDefinitionSet] = ()):
        self._genes: Dict[str, GeneDefinitionSet] = {}
        for ds in definition_sets:
            self.add(ds)

    def add(self, definition_set: GeneDefinitionSet):
        self._genes[definition_set.gene] = definition_set

    def get(self, gene: str) -> Optional[GeneDefinitionSet]:
        return self._genes.get(gene)

    @property
    def genes(self) -> List[str]:
        return sorted(self._genes)

    def __contains__(self, gene: str) -> bool:
        return gene in self._genes

    def __len__(self) -> int:
        return len(self._genes)

    # ===== Loading =====

    @staticmethod
    def parse(data: Dict, gene: Optional[str] = None) -> GeneDefinitionSet:
        """Build a definition set from one gene's definition document."""
        gene = data.get("gene") or gene
        if not gene:
            raise DefinitionIntegrityError("Definition document has no gene symbol")
        try:
            positions = [Position.model_validate(v) for v in data.get("variants", [])]
            named_alleles = [NamedAllele.model_validate(na) for na in data.get("namedAlleles", [])]
        except ValidationError as e:
            raise DefinitionIntegrityError(f"Invalid definition data for {gene}: {e}", gene=gene) from e
        return GeneDefinitionSet.build(gene, positions, named_alleles)

    @classmethod
    def from_dict(cls, documents: Dict[str, Dict]) -> "DefinitionRepository":
        """Build from ``{gene: definition document}``; integrity errors propagate."""
        return cls(cls.parse(doc, gene=gene) for gene, doc in documents.items())

    def load_json(self, path: Union[str, Path]) -> GeneDefinitionSet:
        path = Path(path)
        with open(path, 'r') as f:
            data = json.load(f)
        definition_set = self.parse(data, gene=path.stem.split("_")[0])
        self.add(definition_set)
        return definition_set

    def load_directory(self, directory: Union[str, Path]) -> Dict[str, str]:
        """
        Load every ``*.json`` definition file in ``directory``.

        A gene whose data fails integrity checks is skipped and reported; the
        rest still load. Returns ``{file stem: error message}`` for failures.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Definition directory not found at {directory}")

        failures: Dict[str, str] = {}
        for path in sorted(directory.glob("*.json")):
            try:
                self.load_json(path)
            except DefinitionIntegrityError as e:
                logger.error("Skipping definitions in %s: %s", path.name, e)
                failures[e.gene or path.stem] = str(e)

        logger.info(
            "Definition repository loaded: %d genes (%d failed)", len(self._genes), len(failures)
        )
        return failures
