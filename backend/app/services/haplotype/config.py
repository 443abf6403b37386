"""
Configuration for the haplotype matcher.
Centralizes the tunable limits and parallelism used during allele matching.
"""

import json

from pydantic import BaseModel, Field


class MatcherConfig(BaseModel):
    """Configuration for per-gene allele matching."""

    max_unphased_heterozygous: int = Field(
        default=16,
        ge=0,
        description=(
            "Maximum unphased heterozygous positions per gene before matching fails "
            "with CombinatorialLimitExceeded (permutations grow as 2^n)"
        )
    )

    max_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads for per-gene matching within one sample"
    )

    definition_workers: int = Field(
        default=1,
        ge=1,
        description="Worker threads for testing definitions within one gene (1 = inline)"
    )

    find_combinations: bool = Field(
        default=True,
        description="Synthesize combination/partial calls when no curated definition explains a permutation"
    )

    verbose_logging: bool = Field(
        default=False,
        description="Log per-gene match summaries at INFO instead of DEBUG"
    )


class HaplotypeConfig(BaseModel):
    """Main configuration for the haplotype matching service."""

    matcher: MatcherConfig = Field(
        default_factory=MatcherConfig,
        description="Allele matching configuration"
    )

    definitions_dir: str = Field(
        default="data/definitions",
        description="Directory of per-gene definition JSON files (relative to backend root)"
    )


# Global configuration instance
_config: HaplotypeConfig = HaplotypeConfig()


def get_config() -> HaplotypeConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs):
    """Update configuration parameters."""
    global _config
    current_dict = _config.model_dump()

    # Update nested parameters
    for key, value in kwargs.items():
        if '.' in key:
            # Handle nested keys like 'matcher.max_workers'
            parts = key.split('.')
            current = current_dict
            for part in parts[:-1]:
                current = current[part]
            current[parts[-1]] = value
        else:
            current_dict[key] = value

    _config = HaplotypeConfig(**current_dict)
    return _config


def reset_config():
    """Restore the default configuration."""
    global _config
    _config = HaplotypeConfig()
    return _config


def load_config_from_file(filepath: str):
    """Load configuration from a JSON file."""
    global _config

    with open(filepath, 'r') as f:
        config_dict = json.load(f)

    _config = HaplotypeConfig(**config_dict)
    return _config


def save_config_to_file(filepath: str):
    """Save current configuration to a JSON file."""
    with open(filepath, 'w') as f:
        json.dump(_config.model_dump(), f, indent=2)


def get_matcher_config() -> MatcherConfig:
    """Get allele matching configuration."""
    return _config.matcher
