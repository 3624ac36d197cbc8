"""Tests for seeding the starter concept dictionary."""

import pytest

from concept_dictionary.core.privileges import UserContext
from concept_dictionary.schemas.base import ProposalState
from concept_dictionary.scripts.seed_dictionary import (
    DICTIONARY_FILE,
    load_dictionary_fixture,
    seed_dictionary,
)
from concept_dictionary.services.concept_service import ConceptService


@pytest.fixture
def fixture_data() -> dict:
    return load_dictionary_fixture()


@pytest.fixture
def seeded(db_session, fixture_data) -> ConceptService:
    seed_dictionary(db_session, fixture_data)
    return ConceptService(db_session, UserContext.system())


class TestLoadFixture:
    """Tests for reading the fixture file."""

    def test_fixture_file_exists(self) -> None:
        """Test the bundled fixture is where the script expects it."""
        assert DICTIONARY_FILE.exists()

    def test_fixture_sections(self, fixture_data) -> None:
        """Test the fixture has every section."""
        for section in ("concept_classes", "concept_datatypes", "concepts", "drugs", "concept_proposals"):
            assert fixture_data[section]

    def test_missing_fixture_raises(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_dictionary_fixture(tmp_path / "missing.json")


class TestSeedDictionary:
    """Tests for seed_dictionary."""

    def test_counts(self, db_session, fixture_data) -> None:
        """Test the returned counts match the fixture."""
        counts = seed_dictionary(db_session, fixture_data)

        assert counts == {
            "concept_classes": 7,
            "concept_datatypes": 9,
            "concepts": 20,
            "drugs": 2,
            "concept_proposals": 2,
            "concept_set_derived": 6,
        }

    def test_reseed_clears_existing_rows(self, db_session, fixture_data) -> None:
        """Test seeding twice does not duplicate rows."""
        seed_dictionary(db_session, fixture_data)
        counts = seed_dictionary(db_session, fixture_data)

        service = ConceptService(db_session)
        assert counts["concepts"] == 20
        assert len(service.get_all_concepts()) == 20
        assert len(service.get_all_concept_proposals()) == 2

    def test_search_seeded_concepts(self, seeded) -> None:
        """Test the concept word index is built while seeding."""
        assert [w.concept_id for w in seeded.get_concept_words("fever")] == [3, 4]
        assert [w.concept_id for w in seeded.get_concept_words("fuo")] == [4]
        assert [w.concept_id for w in seeded.get_concept_words("palu", "fr")] == [5]
        assert [w.concept_id for w in seeded.get_concept_words("haemo", "en_GB")] == [7]

    def test_retired_concept(self, seeded) -> None:
        """Test the fixture's retired concept is retired and hidden from search."""
        chronic = seeded.get_concept(18)
        assert chronic.retired is True
        assert chronic.retire_reason == "Duplicate of Cough"
        assert [w.concept_id for w in seeded.get_concept_words("cough")] == [20]

    def test_numeric_ranges(self, seeded) -> None:
        numeric = seeded.get_concept_numeric(7)
        assert numeric.units == "g/dL"
        assert numeric.hi_normal == 17.5

    def test_sets_and_answers(self, seeded) -> None:
        """Test nested sets and coded answers survive seeding."""
        panel = seeded.get_concept(17)
        question = seeded.get_concept(19)

        assert [c.concept_id for c in seeded.get_concepts_by_concept_set(panel)] == [8, 16, 7]
        assert [w.concept_id for w in seeded.get_concept_answers("mal", None, question)] == [5]

    def test_drugs(self, seeded) -> None:
        """Test drugs link to their concept, form and route."""
        drugs = seeded.find_drugs("paracetamol")

        assert [d.name for d in drugs] == ["Paracetamol 1g", "Paracetamol 500mg"]
        assert all(d.dosage_form_id == 13 and d.route_id == 14 for d in drugs)
        assert [c.concept_id for c in seeded.get_concepts_with_drugs_in_formulary()] == [12]

    def test_proposals(self, seeded) -> None:
        proposals = seeded.get_all_concept_proposals()

        assert [p.original_text for p in proposals] == ["Dengue fever", "Pyrexial"]
        assert all(p.state == ProposalState.UNMAPPED for p in proposals)
        assert proposals[0].obs_concept_id == 19

    def test_next_available_id(self, seeded) -> None:
        assert seeded.get_next_available_id() == 21
