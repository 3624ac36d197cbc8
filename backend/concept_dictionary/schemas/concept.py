"""Concept, concept class and concept datatype schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ConceptClassCreate(BaseModel):
    """Schema for creating a concept class."""

    name: str = Field(..., min_length=1, max_length=255, description="Class name (Diagnosis, Test...)")
    description: str | None = Field(None, max_length=255, description="Free text description")


class ConceptClassResponse(BaseModel):
    """Schema for a concept class."""

    concept_class_id: int
    name: str
    description: str | None = None
    retired: bool = False
    date_created: datetime | None = None

    model_config = {"from_attributes": True}


class ConceptDatatypeCreate(BaseModel):
    """Schema for creating a concept datatype."""

    name: str = Field(..., min_length=1, max_length=255, description="Datatype name (Numeric, Coded...)")
    hl7_abbreviation: str | None = Field(None, max_length=3, description="HL7 value type (NM, CWE, ST...)")
    description: str | None = Field(None, max_length=255)


class ConceptDatatypeResponse(BaseModel):
    """Schema for a concept datatype."""

    concept_datatype_id: int
    name: str
    hl7_abbreviation: str | None = None
    description: str | None = None
    retired: bool = False

    model_config = {"from_attributes": True}


class ConceptNameSchema(BaseModel):
    """Name of a concept in one locale."""

    name: str = Field(..., min_length=1, max_length=255)
    locale: str = Field("en", description="Locale such as en or en_GB")
    short_name: str | None = Field(None, max_length=255)
    description: str | None = None

    model_config = {"from_attributes": True}


class ConceptSynonymSchema(BaseModel):
    """Synonym of a concept in one locale."""

    synonym: str = Field(..., min_length=1, max_length=255)
    locale: str = Field("en", description="Locale such as en or en_GB")

    model_config = {"from_attributes": True}


class ConceptNumericSchema(BaseModel):
    """Reference ranges of a Numeric concept."""

    hi_absolute: float | None = None
    hi_critical: float | None = None
    hi_normal: float | None = None
    low_absolute: float | None = None
    low_critical: float | None = None
    low_normal: float | None = None
    units: str | None = Field(None, max_length=50)
    precise: bool = False

    model_config = {"from_attributes": True}


class ConceptCreate(BaseModel):
    """Schema for creating or replacing a concept."""

    names: list[ConceptNameSchema] = Field(..., min_length=1, description="One name per locale")
    synonyms: list[ConceptSynonymSchema] = Field(default_factory=list)
    class_id: int = Field(..., description="Concept class id")
    datatype_id: int = Field(..., description="Concept datatype id")
    is_set: bool = False
    version: str | None = Field(None, max_length=50)
    numeric: ConceptNumericSchema | None = Field(None, description="Only for Numeric concepts")
    answer_concept_ids: list[int] = Field(default_factory=list, description="Coded answers, in order")
    set_member_ids: list[int] = Field(default_factory=list, description="Set members, in order")


class RetireRequest(BaseModel):
    """Reason for retiring a concept, drug or class."""

    reason: str = Field(..., min_length=1, max_length=255)


class ConceptSummary(BaseModel):
    """Short concept reference used inside other responses."""

    concept_id: int
    name: str | None = None
    retired: bool = False

    model_config = {"from_attributes": True}


class ConceptAnswerResponse(BaseModel):
    """A coded answer of a question concept."""

    concept_answer_id: int
    concept_id: int
    answer_concept: ConceptSummary
    answer_drug_id: int | None = None

    model_config = {"from_attributes": True}


class ConceptSetResponse(BaseModel):
    """Direct membership of a concept in a set."""

    concept_set_id: int
    concept: ConceptSummary
    sort_weight: float

    model_config = {"from_attributes": True}


class ConceptResponse(BaseModel):
    """Schema for a full concept."""

    concept_id: int
    name: str | None = None
    names: list[ConceptNameSchema] = Field(default_factory=list)
    synonyms: list[ConceptSynonymSchema] = Field(default_factory=list)
    concept_class: ConceptClassResponse
    datatype: ConceptDatatypeResponse
    is_set: bool = False
    version: str | None = None
    numeric: ConceptNumericSchema | None = None
    answers: list[ConceptAnswerResponse] = Field(default_factory=list)
    set_members: list[ConceptSetResponse] = Field(default_factory=list)
    retired: bool = False
    retire_reason: str | None = None
    creator: str | None = None
    date_created: datetime | None = None
    changed_by: str | None = None
    date_changed: datetime | None = None

    model_config = {"from_attributes": True}


class NextIdResponse(BaseModel):
    """Next free concept id."""

    concept_id: int


class LockStatus(BaseModel):
    """State of the concept dictionary lock."""

    locked: bool
