"""
Unit tests for sample permutation generation.
"""

import pytest

from app.services.haplotype.exceptions import CombinatorialLimitExceeded
from app.services.haplotype.models import SampleCall
from app.services.haplotype.permutations import (
    SamplePermutation,
    count_unphased_heterozygous,
    generate_permutations,
    iter_permutations,
)


def _calls(phased, *genotypes):
    sep = "|" if phased else "/"
    return [
        SampleCall.from_genotype("chr1", pos, gt.replace("/", sep))
        for pos, gt in enumerate(genotypes, start=1)
    ]


class TestGeneratePermutations:

    def test_unphased(self):
        """Test unphased heterozygous positions branch independently"""
        calls = _calls(False, "T/T", "A/T", "C/C", "C/G")

        keys = {p.key for p in generate_permutations(calls)}

        assert keys == {
            "1:T;2:A;3:C;4:C;",
            "1:T;2:A;3:C;4:G;",
            "1:T;2:T;3:C;4:C;",
            "1:T;2:T;3:C;4:G;",
        }

    def test_phased(self):
        """Test phased calls yield one permutation per strand"""
        calls = _calls(True, "T/T", "A/T", "C/C", "C/G")

        keys = {p.key for p in generate_permutations(calls)}

        assert keys == {"1:T;2:A;3:C;4:C;", "1:T;2:T;3:C;4:G;"}

    @pytest.mark.parametrize("k", [1, 2, 5, 12])
    def test_phased_never_exceeds_two(self, k):
        """Test phased samples give at most two permutations"""
        calls = _calls(True, *(["A/G"] * k))

        assert len(generate_permutations(calls)) == 2

    @pytest.mark.parametrize("h", [0, 1, 3, 6])
    def test_unphased_count_is_power_of_two(self, h):
        """Test 2^h permutations for h unphased heterozygous positions"""
        calls = _calls(False, *(["A/G"] * h + ["C/C"] * 2))

        assert len(generate_permutations(calls)) == 2 ** h

    def test_homozygous_only_yields_single_permutation(self):
        """Test homozygous-only sample -> one permutation"""
        calls = _calls(True, "A/A", "C/C")

        perms = generate_permutations(calls)

        assert len(perms) == 1
        assert next(iter(perms)).key == "1:A;2:C;"

    def test_mixed_phase(self):
        """Phased pairs stay together while unphased positions branch."""
        calls = [
            SampleCall.from_genotype("chr1", 1, "A|G"),
            SampleCall.from_genotype("chr1", 2, "C/T"),
            SampleCall.from_genotype("chr1", 3, "T|C"),
        ]

        keys = {p.key for p in generate_permutations(calls)}

        assert keys == {
            "1:A;2:C;3:T;",
            "1:A;2:T;3:T;",
            "1:G;2:C;3:C;",
            "1:G;2:T;3:C;",
        }

    def test_missing_position_is_wildcard(self):
        """Test that no-calls become wildcards"""
        calls = _calls(False, "A/G", "./.", "C/C")

        perms = sorted(generate_permutations(calls))

        assert [p.key for p in perms] == ["1:A;2:.;3:C;", "1:G;2:.;3:C;"]
        assert all(p.call_at(1) is None for p in perms)

    def test_hemizygous_contributes_one_call(self):
        """Test hemizygous calls contribute a single allele"""
        calls = [
            SampleCall.from_genotype("chrX", 10, "A"),
            SampleCall.from_genotype("chrX", 20, "G"),
        ]

        perms = generate_permutations(calls)

        assert {p.key for p in perms} == {"10:A;20:G;"}

    def test_iteration_is_lazy_and_deduplicated(self):
        """Test lazy generation without duplicates"""
        calls = _calls(False, "A/G", "C/T")

        stream = iter_permutations(calls)
        first = next(stream)
        rest = list(stream)

        assert isinstance(first, SamplePermutation)
        assert len(rest) == 3
        assert first not in rest


class TestCombinatorialLimit:

    def test_count_unphased_heterozygous(self):
        """Test that only unphased heterozygous positions are counted"""
        calls = _calls(False, "A/G", "C/C", "T/G")
        calls.append(SampleCall.from_genotype("chr1", 9, "A|G"))

        assert count_unphased_heterozygous(calls) == 2

    def test_limit_exceeded_fails_before_generating(self):
        """Test the ceiling is checked before generation starts"""
        calls = _calls(False, *(["A/G"] * 30))

        with pytest.raises(CombinatorialLimitExceeded) as exc_info:
            iter_permutations(calls, max_unphased_heterozygous=10, gene="GENE1")

        assert exc_info.value.count == 30
        assert exc_info.value.limit == 10
        assert "GENE1" in str(exc_info.value)

    def test_limit_is_inclusive(self):
        """Test a sample exactly at the ceiling"""
        calls = _calls(False, *(["A/G"] * 4))

        assert len(generate_permutations(calls, max_unphased_heterozygous=4)) == 16

    def test_phased_positions_do_not_count_toward_limit(self):
        """Test phased heterozygous positions are exempt from the ceiling"""
        calls = _calls(True, *(["A/G"] * 40))

        assert len(generate_permutations(calls, max_unphased_heterozygous=0)) == 2


class TestSampleCall:

    def test_from_genotype_variants(self):
        """Test parsing genotype strings"""
        unphased = SampleCall.from_genotype("chr1", 1, "A/G")
        phased = SampleCall.from_genotype("chr1", 1, "A|G")
        missing = SampleCall.from_genotype("chr1", 1, "./.")
        hemi = SampleCall.from_genotype("chr1", 1, "T")

        assert unphased.is_heterozygous and not unphased.phased
        assert phased.phased
        assert missing.is_missing
        assert hemi.is_hemizygous and not hemi.is_heterozygous
        assert unphased.vcf_alleles == ("A", "G")
