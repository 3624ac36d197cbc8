"""Pydantic schemas for the concept dictionary."""

from concept_dictionary.schemas.base import ConceptSortField, DatatypeName, ProposalState
from concept_dictionary.schemas.concept import (
    ConceptAnswerResponse,
    ConceptClassCreate,
    ConceptClassResponse,
    ConceptCreate,
    ConceptDatatypeCreate,
    ConceptDatatypeResponse,
    ConceptNameSchema,
    ConceptNumericSchema,
    ConceptResponse,
    ConceptSetResponse,
    ConceptSummary,
    ConceptSynonymSchema,
    LockStatus,
    NextIdResponse,
    RetireRequest,
)
from concept_dictionary.schemas.drug import DrugCreate, DrugResponse
from concept_dictionary.schemas.proposal import (
    ConceptProposalCreate,
    ConceptProposalMap,
    ConceptProposalResponse,
)
from concept_dictionary.schemas.search import (
    ConceptSearchResponse,
    ConceptWordResponse,
    JobEnqueueResponse,
    JobStatusResponse,
)

__all__ = [
    # Enums
    "ConceptSortField",
    "DatatypeName",
    "ProposalState",
    # Concepts
    "ConceptAnswerResponse",
    "ConceptClassCreate",
    "ConceptClassResponse",
    "ConceptCreate",
    "ConceptDatatypeCreate",
    "ConceptDatatypeResponse",
    "ConceptNameSchema",
    "ConceptNumericSchema",
    "ConceptResponse",
    "ConceptSetResponse",
    "ConceptSummary",
    "ConceptSynonymSchema",
    "LockStatus",
    "NextIdResponse",
    "RetireRequest",
    # Drugs
    "DrugCreate",
    "DrugResponse",
    # Proposals
    "ConceptProposalCreate",
    "ConceptProposalMap",
    "ConceptProposalResponse",
    # Search and jobs
    "ConceptSearchResponse",
    "ConceptWordResponse",
    "JobEnqueueResponse",
    "JobStatusResponse",
]
