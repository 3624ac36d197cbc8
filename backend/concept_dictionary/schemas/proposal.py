"""Concept proposal schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from concept_dictionary.schemas.base import ProposalState
from concept_dictionary.schemas.concept import ConceptSummary


class ConceptProposalCreate(BaseModel):
    """Schema for proposing a new term."""

    original_text: str = Field(..., min_length=1, max_length=255, description="Text as entered by the user")
    obs_concept_id: int | None = Field(None, description="Question the text was entered for")
    comments: str | None = Field(None, max_length=255)
    locale: str | None = Field(None, description="Locale of the proposed text")


class ConceptProposalMap(BaseModel):
    """How to resolve a proposal."""

    state: ProposalState = Field(..., description="CONCEPT, SYNONYM or REJECT")
    concept_id: int | None = Field(None, description="Concept to map to (not needed for REJECT)")
    final_text: str | None = Field(None, max_length=255, description="Synonym text for SYNONYM mappings")
    comments: str | None = Field(None, max_length=255)


class ConceptProposalResponse(BaseModel):
    """Schema for a concept proposal."""

    concept_proposal_id: int
    original_text: str
    final_text: str | None = None
    state: ProposalState
    obs_concept_id: int | None = None
    mapped_concept: ConceptSummary | None = None
    comments: str | None = None
    locale: str | None = None
    creator: str | None = None
    date_created: datetime | None = None
    changed_by: str | None = None
    date_changed: datetime | None = None

    model_config = {"from_attributes": True}
