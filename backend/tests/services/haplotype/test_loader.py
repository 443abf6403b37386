"""
Tests for the definition repository and matcher configuration.
"""

import json

import pytest

from app.services.haplotype import config as config_module
from app.services.haplotype.exceptions import DefinitionIntegrityError
from app.services.haplotype.loader import DefinitionRepository, GeneDefinitionSet
from app.services.haplotype.matcher import NamedAlleleMatcher
from app.services.haplotype.models import NamedAllele, SampleCall


def _document(gene="GENE3", reference_alleles=("C", "T")):
    return {
        "gene": gene,
        "variants": [
            {"chromosome": "chr7", "position": 1000, "rsid": "rs1", "ref": "C", "type": "SNP"},
            {"chromosome": "chr7", "position": 2000, "rsid": "rs2", "ref": "T"},
        ],
        "namedAlleles": [
            {
                "id": "G3.1",
                "name": "*1",
                "alleles": list(reference_alleles),
                "cpicAlleles": list(reference_alleles),
                "matchesreferencesequence": True,
                "function": "Normal function",
            },
            {"id": "G3.2", "name": "*2", "alleles": ["A", None], "reference": False},
        ],
    }


class TestGeneDefinitionSet:

    def test_build_sorts_and_finds_reference(self, gene1):
        """Test definition set construction -> canonical order"""
        assert gene1.reference.name == "*1"
        assert [d.name for d in gene1.definitions] == ["*1", "*2", "*3", "*4", "*5", "*10"]
        assert gene1.get("*4").alleles == (None, None, "A", None)
        assert gene1.get("*99") is None
        assert len(gene1) == 6

    def test_requires_exactly_one_reference(self, positions):
        """Test that a gene needs exactly one reference allele"""
        alleles = [
            NamedAllele(id="a", name="*1", alleles=["A", "C", "G", "T"], reference=True),
            NamedAllele(id="b", name="*1B", alleles=["A", "C", "G", "T"], reference=True),
        ]

        with pytest.raises(DefinitionIntegrityError, match="exactly one reference"):
            GeneDefinitionSet.build("GENE1", positions, alleles)

        with pytest.raises(DefinitionIntegrityError, match="exactly one reference"):
            GeneDefinitionSet.build("GENE1", positions, [
                NamedAllele(id="c", name="*2", alleles=["G", None, None, None]),
            ])

    def test_duplicate_ids(self, positions):
        """Test rejection of duplicate definition ids"""
        alleles = [
            NamedAllele(id="a", name="*1", alleles=["A", "C", "G", "T"], reference=True),
            NamedAllele(id="a", name="*2", alleles=["G", None, None, None]),
        ]

        with pytest.raises(DefinitionIntegrityError, match="duplicate"):
            GeneDefinitionSet.build("GENE1", positions, alleles)


class TestDefinitionRepository:

    def test_parse_curated_document(self):
        """Test parsing a curated definition document"""
        definition_set = DefinitionRepository.parse(_document())

        assert definition_set.gene == "GENE3"
        assert [p.rsid for p in definition_set.positions] == ["rs1", "rs2"]
        assert definition_set.reference.is_reference
        assert definition_set.reference.cpic_alleles == ("C", "T")
        assert definition_set.get("*2").cpic_alleles == ("A", None)

    def test_from_dict(self):
        """Test building a repository from in-memory documents"""
        repository = DefinitionRepository.from_dict({"GENE3": _document()})

        assert repository.genes == ["GENE3"]
        assert "GENE3" in repository
        assert len(repository) == 1

    def test_integrity_error_propagates_from_dict(self):
        """Test that integrity errors name the gene"""
        with pytest.raises(DefinitionIntegrityError) as exc_info:
            DefinitionRepository.from_dict({"GENE3": _document(reference_alleles=("C",))})

        assert exc_info.value.gene == "GENE3"

    def test_invalid_field_is_integrity_error(self):
        """Test that validation errors surface as integrity errors"""
        document = _document()
        document["variants"][0]["position"] = -5

        with pytest.raises(DefinitionIntegrityError, match="Invalid definition data"):
            DefinitionRepository.parse(document)

    def test_load_json(self, tmp_path):
        """Test loading one definition file"""
        path = tmp_path / "GENE3_translation.json"
        path.write_text(json.dumps(_document()))

        repository = DefinitionRepository()
        definition_set = repository.load_json(path)

        assert repository.get("GENE3") is definition_set

    def test_load_directory_isolates_bad_genes(self, tmp_path, caplog):
        """Test that one bad file does not stop the others loading"""
        (tmp_path / "GENE3.json").write_text(json.dumps(_document()))
        (tmp_path / "GENE4.json").write_text(
            json.dumps(_document(gene="GENE4", reference_alleles=("C", None)))
        )

        repository = DefinitionRepository()
        failures = repository.load_directory(tmp_path)

        assert repository.genes == ["GENE3"]
        assert list(failures) == ["GENE4"]
        assert "GENE4.json" in caplog.text

    def test_missing_directory(self, tmp_path):
        """Test loading from a directory that does not exist"""
        with pytest.raises(FileNotFoundError):
            DefinitionRepository().load_directory(tmp_path / "nope")

    def test_loaded_definitions_match(self):
        """Test matching against loaded definitions end to end"""
        repository = DefinitionRepository.from_dict({"GENE3": _document()})
        calls = [
            SampleCall.from_genotype("chr7", 1000, "C/A"),
            SampleCall.from_genotype("chr7", 2000, "T/T"),
        ]

        result = NamedAlleleMatcher().match_sample("S9", {"GENE3": calls}, repository)

        assert [d.label for d in result.genes["GENE3"].diplotypes] == ["*1/*1", "*1/*2", "*2/*2"]


class TestConfig:

    @pytest.fixture(autouse=True)
    def restore(self):
        yield
        config_module.reset_config()

    def test_defaults(self):
        """Test default matcher settings"""
        cfg = config_module.get_matcher_config()

        assert cfg.max_unphased_heterozygous == 16
        assert cfg.find_combinations is True

    def test_update_nested(self):
        """Test dotted-key config updates"""
        config_module.update_config(**{"matcher.max_workers": 8})

        assert config_module.get_matcher_config().max_workers == 8
        assert NamedAlleleMatcher().config.max_workers == 8

    def test_validation(self):
        """Test that invalid config values are rejected"""
        with pytest.raises(ValueError):
            config_module.update_config(**{"matcher.max_workers": 0})

    def test_file_round_trip(self, tmp_path):
        """Test saving and reloading config"""
        path = tmp_path / "config.json"
        config_module.update_config(**{"matcher.verbose_logging": True})
        config_module.save_config_to_file(str(path))
        config_module.reset_config()

        config_module.load_config_from_file(str(path))

        assert config_module.get_matcher_config().verbose_logging is True
