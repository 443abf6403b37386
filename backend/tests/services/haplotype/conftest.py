"""
Shared fixtures for haplotype matcher tests.

GENE1 is a small curated gene with four positions:

    idx  position  ref   *1  *2  *3  *4  *5  *10
    0    chr1:100  A     A   G   .   .   G   G
    1    chr1:200  C     C   .   T   .   .   .
    2    chr1:300  G     G   .   .   A   .   R  (R = A/G wobble)
    3    chr1:400  T     T   .   .   .   C   .
"""

import pytest

from app.services.haplotype.config import MatcherConfig
from app.services.haplotype.loader import DefinitionRepository, GeneDefinitionSet
from app.services.haplotype.models import NamedAllele, Position, SampleCall


GENE1_POSITIONS = [
    Position(chromosome="chr1", position=100, ref="A", rsid="rs100"),
    Position(chromosome="chr1", position=200, ref="C", rsid="rs200"),
    Position(chromosome="chr1", position=300, ref="G", rsid="rs300"),
    Position(chromosome="chr1", position=400, ref="T", rsid="rs400"),
]

GENE1_ALLELES = [
    NamedAllele(id="CA1", name="*1", alleles=["A", "C", "G", "T"], reference=True),
    NamedAllele(id="CA2", name="*2", alleles=["G", None, None, None]),
    NamedAllele(id="CA3", name="*3", alleles=[None, "T", None, None]),
    NamedAllele(id="CA4", name="*4", alleles=[None, None, "A", None]),
    NamedAllele(id="CA5", name="*5", alleles=["G", None, None, "C"]),
    NamedAllele(id="CA10", name="*10", alleles=["G", None, "R", None]),
]


def gene1_calls(*genotypes):
    """Sample calls for GENE1 from genotype strings, e.g. ``"A/G"``."""
    return [
        SampleCall.from_genotype(p.chromosome, p.position, gt)
        for p, gt in zip(GENE1_POSITIONS, genotypes)
    ]


@pytest.fixture
def positions():
    return list(GENE1_POSITIONS)


@pytest.fixture
def gene1():
    return GeneDefinitionSet.build("GENE1", GENE1_POSITIONS, GENE1_ALLELES)


@pytest.fixture
def repository(gene1):
    return DefinitionRepository([gene1])


@pytest.fixture
def config():
    return MatcherConfig(max_unphased_heterozygous=8, max_workers=2)


@pytest.fixture
def make_calls():
    return gene1_calls
