"""Concept search and maintenance job schemas."""

from typing import Any

from pydantic import BaseModel, Field


class ConceptWordResponse(BaseModel):
    """One search hit: the best matching word row of a concept."""

    concept_id: int
    word: str
    synonym: str = Field("", description="Synonym text, empty for a name match")
    locale: str
    name: str = Field(..., description="Matched name or synonym text")

    model_config = {"from_attributes": True}


class ConceptSearchResponse(BaseModel):
    """A page of concept search results."""

    phrase: str
    locales: list[str]
    start: int
    size: int
    results: list[ConceptWordResponse] = Field(default_factory=list)


class JobEnqueueResponse(BaseModel):
    """Result of starting a maintenance job."""

    job_id: str | None = Field(None, description="RQ job id, None when run inline")
    status: str
    result: Any = None


class JobStatusResponse(BaseModel):
    """Status of a maintenance job."""

    job_id: str
    status: str
    result: Any = None
