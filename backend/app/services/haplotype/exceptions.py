"""
Error taxonomy for the haplotype matcher.

Zero matches and tied scores are not errors; they are reported as results.
"""

from typing import Optional


class HaplotypeMatcherError(Exception):
    pass


class DefinitionIntegrityError(HaplotypeMatcherError, ValueError):
    """Curated definition data is corrupt. Fatal for the affected gene."""

    def __init__(self, message: str, gene: Optional[str] = None):
        super().__init__(message)
        self.gene = gene


class UninitializedAccessError(HaplotypeMatcherError, RuntimeError):
    """A derived lookup was read from a definition that was never built."""


class CombinatorialLimitExceeded(HaplotypeMatcherError, RuntimeError):
    """Sample data would open more permutation threads than allowed."""

    def __init__(self, count: int, limit: int, gene: Optional[str] = None):
        self.count = count
        self.limit = limit
        self.gene = gene
        where = f" for {gene}" if gene else ""
        super().__init__(
            f"{count} unphased heterozygous positions{where} exceeds the limit of {limit}"
        )


class SampleDataError(HaplotypeMatcherError, ValueError):
    """Sample calls are not aligned with the gene's positions."""
