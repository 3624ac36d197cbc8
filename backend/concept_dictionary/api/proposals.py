"""Concept proposal API endpoints.

Users propose free-text terms that are missing from the dictionary. A
dictionary manager later maps each proposal to an existing concept,
adds its text as a synonym, or rejects it.
"""

import logging

from fastapi import APIRouter, Response, status

from concept_dictionary.api.dependencies import ConceptServiceDep, load_concept
from concept_dictionary.core.exceptions import ObjectNotFoundException
from concept_dictionary.models import Concept, ConceptProposal
from concept_dictionary.schemas import (
    ConceptProposalCreate,
    ConceptProposalMap,
    ConceptProposalResponse,
    ConceptSummary,
    ProposalState,
)
from concept_dictionary.services.concept_service import ConceptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/concept-proposals", tags=["Concept Proposals"])


def load_proposal(service: ConceptService, concept_proposal_id: int) -> ConceptProposal:
    proposal = service.get_concept_proposal(concept_proposal_id)
    if proposal is None:
        raise ObjectNotFoundException("Concept proposal", concept_proposal_id)
    return proposal


@router.get("", response_model=list[ConceptProposalResponse], summary="List concept proposals")
def list_proposals(
    service: ConceptServiceDep,
    text: str | None = None,
    include_completed: bool = False,
) -> list[ConceptProposal]:
    """Open proposals, optionally only those with the given original text."""
    if text:
        return service.get_concept_proposals(text)
    return service.get_all_concept_proposals(include_completed)


@router.get(
    "/proposed-concepts",
    response_model=list[ConceptSummary],
    summary="Concepts earlier proposals with this text were mapped to",
)
def proposed_concepts(text: str, service: ConceptServiceDep) -> list[Concept]:
    return service.get_proposed_concepts(text)


@router.get("/{concept_proposal_id}", response_model=ConceptProposalResponse, summary="Get a concept proposal")
def get_proposal(concept_proposal_id: int, service: ConceptServiceDep) -> ConceptProposal:
    return load_proposal(service, concept_proposal_id)


@router.post(
    "",
    response_model=ConceptProposalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Propose a concept",
)
def create_proposal(request: ConceptProposalCreate, service: ConceptServiceDep) -> ConceptProposal:
    proposal = ConceptProposal(
        original_text=request.original_text,
        obs_concept=load_concept(service, request.obs_concept_id) if request.obs_concept_id else None,
        comments=request.comments,
        locale=request.locale,
    )
    return service.save_concept_proposal(proposal)


@router.post(
    "/{concept_proposal_id}/map",
    response_model=ConceptProposalResponse,
    summary="Map a proposal",
    description="Map to a concept (CONCEPT), add the final text as a synonym (SYNONYM) or reject (REJECT).",
)
def map_proposal(
    concept_proposal_id: int,
    request: ConceptProposalMap,
    service: ConceptServiceDep,
) -> ConceptProposal:
    proposal = load_proposal(service, concept_proposal_id)
    concept = None
    if request.state != ProposalState.REJECT and request.concept_id is not None:
        concept = load_concept(service, request.concept_id)

    proposal.state = request.state
    proposal.final_text = request.final_text
    if request.comments is not None:
        proposal.comments = request.comments

    service.map_concept_proposal_to_concept(proposal, concept)
    logger.info(f"Proposal {concept_proposal_id} resolved as {proposal.state.value}")
    return proposal


@router.post(
    "/{concept_proposal_id}/reject",
    response_model=ConceptProposalResponse,
    summary="Reject a proposal",
)
def reject_proposal(concept_proposal_id: int, service: ConceptServiceDep) -> ConceptProposal:
    return service.reject_concept_proposal(load_proposal(service, concept_proposal_id))


@router.delete(
    "/{concept_proposal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Purge a concept proposal",
)
def purge_proposal(concept_proposal_id: int, service: ConceptServiceDep) -> Response:
    service.purge_concept_proposal(load_proposal(service, concept_proposal_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
