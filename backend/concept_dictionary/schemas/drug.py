"""Drug schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from concept_dictionary.schemas.concept import ConceptSummary


class DrugCreate(BaseModel):
    """Schema for creating a drug."""

    name: str = Field(..., min_length=1, max_length=255, description="Drug name")
    concept_id: int = Field(..., description="Concept the drug is a form of")
    combination: bool = False
    dosage_form_id: int | None = Field(None, description="Concept describing the dosage form")
    dose_strength: float | None = None
    maximum_daily_dose: float | None = None
    minimum_daily_dose: float | None = None
    route_id: int | None = Field(None, description="Concept describing the route")
    units: str | None = Field(None, max_length=50)


class DrugResponse(BaseModel):
    """Schema for a drug."""

    drug_id: int
    name: str
    concept: ConceptSummary
    combination: bool = False
    dosage_form_id: int | None = None
    dose_strength: float | None = None
    maximum_daily_dose: float | None = None
    minimum_daily_dose: float | None = None
    route_id: int | None = None
    units: str | None = None
    retired: bool = False
    retire_reason: str | None = None
    date_created: datetime | None = None

    model_config = {"from_attributes": True}
