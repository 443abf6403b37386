"""
Match-quality scoring for a definition against one sample.
"""

from typing import Collection

from .definition import HaplotypeDefinition
from .permutations import SamplePermutation


def score_for_sample(
    definition: HaplotypeDefinition,
    permutations: Collection[SamplePermutation],
) -> int:
    """
    Base score adjusted for wobble positions.

    A wobble that only ever matched the reference base across the sample's
    matched permutations carries no distinguishing signal and is not counted.
    """
    if not definition.wobble_positions or not permutations:
        return definition.score

    score = definition.score
    for idx in definition.wobble_positions:
        ref = definition.positions[idx].ref
        if all(p.call_at(idx) == ref for p in permutations):
            score -= 1
    return score
