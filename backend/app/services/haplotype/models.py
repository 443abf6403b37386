"""
Input data models for the haplotype matcher.

Positions and named alleles come from curated gene definitions; sample calls
come from the variant ingestion layer, already aligned to the gene's positions.
"""

from typing import FrozenSet, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .exceptions import UninitializedAccessError


class Position(BaseModel):
    """One curated genomic coordinate tracked for a gene."""
    model_config = ConfigDict(frozen=True)

    chromosome: str = Field(..., description="Chromosome identifier (e.g., chr10)")
    position: int = Field(..., gt=0, description="1-based genomic coordinate")
    ref: str = Field(..., description="Reference allele at this position")
    rsid: Optional[str] = Field(None, description="dbSNP reference ID")

    @property
    def key(self) -> str:
        return f"{self.chromosome}:{self.position}"

    def __str__(self) -> str:
        return self.rsid or self.key


class NamedAllele(BaseModel):
    """
    A curated haplotype definition as loaded, before initialization.

    Derived lookups (score, pattern, wobble positions, per-position calls) only
    exist on the HaplotypeDefinition produced by
    ``definition.build_definition``; reading them here raises
    UninitializedAccessError.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Stable identifier (e.g., CA10000.1)")
    name: str = Field(..., description="Display name (e.g., *2)")
    alleles: Tuple[Optional[str], ...] = Field(
        ..., description="Calls aligned 1:1 with the gene's positions; None = not distinguishing"
    )
    cpic_alleles: Tuple[Optional[str], ...] = Field(
        default=(),
        validation_alias=AliasChoices("cpic_alleles", "cpicAlleles"),
        description="Normalized calls used for name construction",
    )
    reference: bool = Field(
        default=False,
        validation_alias=AliasChoices("reference", "matchesreferencesequence"),
        description="Whether this is the gene's reference haplotype",
    )
    missing_positions: FrozenSet[int] = Field(
        default_factory=frozenset,
        description="Position indices this copy has no sample data for",
    )
    num_combinations: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("num_combinations", "numCombinations")
    )
    num_partials: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("num_partials", "numPartials")
    )

    @model_validator(mode="before")
    @classmethod
    def _default_cpic_alleles(cls, data):
        if isinstance(data, dict) and not data.get("cpic_alleles") and not data.get("cpicAlleles"):
            data = {**data, "cpic_alleles": data.get("alleles") or ()}
        return data

    def _uninitialized(self, what: str):
        raise UninitializedAccessError(
            f"{what} of {self.name} [{self.id}] is not available until the definition is built"
        )

    @property
    def score(self) -> int:
        self._uninitialized("score")

    @property
    def pattern(self):
        self._uninitialized("pattern")

    @property
    def wobble_positions(self) -> Tuple[int, ...]:
        self._uninitialized("wobble positions")

    def get_allele(self, position: Position) -> Optional[str]:
        self._uninitialized("allele lookup")

    def __str__(self) -> str:
        return f"{self.name} [{self.id}]"


class SampleCall(BaseModel):
    """One sample's observed data at one position."""
    model_config = ConfigDict(frozen=True)

    chromosome: str = Field(..., description="Chromosome identifier")
    position: int = Field(..., gt=0, description="1-based genomic coordinate")
    allele1: Optional[str] = Field(None, description="First observed allele; None = no call")
    allele2: Optional[str] = Field(None, description="Second observed allele; None if hemizygous")
    phased: bool = Field(default=False, description="Whether allele1/allele2 are phased")
    vcf_alleles: Tuple[str, ...] = Field(
        default=(), description="Individual bases this call could represent; reported per position"
    )

    @model_validator(mode="before")
    @classmethod
    def _default_vcf_alleles(cls, data):
        if isinstance(data, dict) and not data.get("vcf_alleles"):
            observed = [a for a in (data.get("allele1"), data.get("allele2")) if a is not None]
            data = {**data, "vcf_alleles": tuple(dict.fromkeys(observed))}
        return data

    @property
    def is_missing(self) -> bool:
        return self.allele1 is None

    @property
    def is_hemizygous(self) -> bool:
        return self.allele1 is not None and self.allele2 is None

    @property
    def is_heterozygous(self) -> bool:
        return (
            self.allele1 is not None
            and self.allele2 is not None
            and self.allele1 != self.allele2
        )

    @classmethod
    def from_genotype(cls, chromosome: str, position: int, genotype: str) -> "SampleCall":
        """
        Build a call from a VCF-style genotype string of bases.

        ``"A/G"`` is unphased, ``"A|G"`` phased, ``"A"`` hemizygous and ``"."``
        or ``"./."`` a no-call.
        """
        phased = "|" in genotype
        parts: List[str] = genotype.replace("|", "/").split("/")
        alleles = [None if p in (".", "") else p for p in parts]
        if all(a is None for a in alleles):
            return cls(chromosome=chromosome, position=position, phased=phased)
        if len(alleles) == 1:
            return cls(chromosome=chromosome, position=position, allele1=alleles[0])
        if None in alleles:
            # half-called genotypes carry no usable phase or zygosity
            return cls(chromosome=chromosome, position=position)
        return cls(
            chromosome=chromosome,
            position=position,
            allele1=alleles[0],
            allele2=alleles[1],
            phased=phased,
        )
