"""
Haplotype Matching Service

Deterministic named-allele matcher: expands a sample's calls into candidate
haplotype sequences, matches them against curated definitions, scores the
matches and assembles diplotype candidates.
"""

from .models import Position, NamedAllele, SampleCall
from .definition import HaplotypeDefinition, build_definition, initialize, with_missing_positions
from .exceptions import (
    HaplotypeMatcherError,
    DefinitionIntegrityError,
    UninitializedAccessError,
    CombinatorialLimitExceeded,
    SampleDataError,
)
from .naming import compare_names, natural_key
from .permutations import SamplePermutation, generate_permutations, iter_permutations
from .pairs import DiplotypeCandidate, generate_perfect_pairs, rank_diplotypes
from .scoring import score_for_sample
from .loader import DefinitionRepository, GeneDefinitionSet
from .matcher import (
    GeneMatchResult,
    MatchResult,
    NamedAlleleMatcher,
    SampleMatchResult,
    match_gene,
    match_sample,
)
from .config import (
    get_config,
    update_config,
    load_config_from_file,
    save_config_to_file,
    get_matcher_config,
    MatcherConfig,
)

__all__ = [
    # Models
    'Position',
    'NamedAllele',
    'SampleCall',
    'HaplotypeDefinition',
    'SamplePermutation',
    'DiplotypeCandidate',

    # Errors
    'HaplotypeMatcherError',
    'DefinitionIntegrityError',
    'UninitializedAccessError',
    'CombinatorialLimitExceeded',
    'SampleDataError',

    # Definitions
    'DefinitionRepository',
    'GeneDefinitionSet',
    'build_definition',

    # Matching
    'NamedAlleleMatcher',
    'MatchResult',
    'GeneMatchResult',
    'SampleMatchResult',
    'match_gene',
    'match_sample',
]
