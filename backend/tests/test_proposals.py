"""Tests for concept proposals: creation, lookup, mapping and rejection."""

import pytest

from concept_dictionary.core.exceptions import APIException
from concept_dictionary.models import ConceptProposal
from concept_dictionary.schemas.base import ProposalState


@pytest.fixture
def question(make_concept):
    return make_concept("Diagnosis present", concept_class="Question", datatype="Coded")


@pytest.fixture
def fever(make_concept):
    return make_concept("Fever", concept_class="Symptom")


@pytest.fixture
def proposal(service, question) -> ConceptProposal:
    return service.save_concept_proposal(
        ConceptProposal(original_text="Pyrexial", obs_concept=question, comments="Seen at triage", locale="EN")
    )


class TestSaveProposal:
    """Tests for save_concept_proposal."""

    def test_new_proposal_is_unmapped(self, proposal) -> None:
        assert proposal.concept_proposal_id is not None
        assert proposal.state == ProposalState.UNMAPPED
        assert proposal.creator == "system"
        assert proposal.locale == "en"
        assert proposal.is_completed is False

    def test_update_stamps_changed_by(self, service, proposal) -> None:
        proposal.comments = "Seen twice"
        service.save_concept_proposal(proposal)

        assert proposal.changed_by == "system"
        assert proposal.date_changed is not None

    def test_requires_text(self, service, dictionary) -> None:
        with pytest.raises(APIException, match="original text"):
            service.save_concept_proposal(ConceptProposal(original_text=" "))

    def test_purge(self, service, proposal) -> None:
        proposal_id = proposal.concept_proposal_id
        service.purge_concept_proposal(proposal)

        assert service.get_concept_proposal(proposal_id) is None


class TestProposalLookup:
    """Tests for listing proposals."""

    def test_open_proposals_by_text(self, service, proposal) -> None:
        assert service.get_concept_proposals("pyrexial") == [proposal]
        assert service.get_concept_proposals("Dengue") == []

    def test_completed_proposals_hidden_by_default(self, service, proposal, fever) -> None:
        other = service.save_concept_proposal(ConceptProposal(original_text="Dengue fever"))
        service.map_concept_proposal_to_concept(proposal, fever)

        assert service.get_all_concept_proposals() == [other]
        assert service.get_all_concept_proposals(include_completed=True) == [other, proposal]
        assert service.get_concept_proposals("Pyrexial") == []


class TestMapProposal:
    """Tests for map_concept_proposal_to_concept."""

    def test_map_to_concept(self, service, proposal, fever) -> None:
        result = service.map_concept_proposal_to_concept(proposal, fever)

        assert result is fever
        assert proposal.state == ProposalState.CONCEPT
        assert proposal.mapped_concept is fever
        assert proposal.final_text == ""
        assert proposal.is_completed is True
        assert service.get_proposed_concepts("pyrexial") == [fever]

    def test_map_as_synonym_adds_searchable_synonym(self, service, proposal, fever) -> None:
        proposal.state = ProposalState.SYNONYM
        proposal.final_text = " Pyrexial "

        service.map_concept_proposal_to_concept(proposal, fever)

        assert proposal.final_text == "Pyrexial"
        assert [s.synonym for s in fever.synonyms] == ["Pyrexial"]
        assert fever.synonyms[0].locale == "en"
        [word] = service.get_concept_words("pyrexial")
        assert word.concept_id == fever.concept_id
        assert word.synonym == "Pyrexial"
        assert service.get_proposed_concepts("Pyrexial") == [fever]

    def test_synonym_needs_final_text(self, service, proposal, fever) -> None:
        proposal.state = ProposalState.SYNONYM
        proposal.final_text = ""

        with pytest.raises(APIException, match="final text"):
            service.map_concept_proposal_to_concept(proposal, fever)

    def test_concept_required(self, service, proposal) -> None:
        with pytest.raises(APIException, match="existing concept"):
            service.map_concept_proposal_to_concept(proposal, None)

    def test_reject_state_rejects(self, service, proposal, fever) -> None:
        proposal.state = ProposalState.REJECT

        assert service.map_concept_proposal_to_concept(proposal, fever) is None
        assert proposal.state == ProposalState.REJECT
        assert proposal.mapped_concept is None
        assert service.get_proposed_concepts("pyrexial") == []

    def test_map_refused_while_locked_for_synonyms(self, service, proposal, fever) -> None:
        service.set_concepts_locked(True)
        proposal.state = ProposalState.SYNONYM
        proposal.final_text = "Pyrexial"

        with pytest.raises(APIException, match="locked"):
            service.map_concept_proposal_to_concept(proposal, fever)


class TestRejectProposal:
    """Tests for reject_concept_proposal."""

    def test_reject(self, service, proposal, fever) -> None:
        service.map_concept_proposal_to_concept(proposal, fever)

        service.reject_concept_proposal(proposal)

        assert proposal.state == ProposalState.REJECT
        assert proposal.mapped_concept is None
        assert proposal.final_text == ""
        assert service.get_all_concept_proposals() == []
