"""Concept datatype API endpoints."""

from fastapi import APIRouter, Response, status

from concept_dictionary.api.dependencies import ConceptServiceDep, load_concept_datatype
from concept_dictionary.models import ConceptDatatype
from concept_dictionary.schemas import ConceptDatatypeCreate, ConceptDatatypeResponse

router = APIRouter(prefix="/concept-datatypes", tags=["Concept Datatypes"])


@router.get("", response_model=list[ConceptDatatypeResponse], summary="List concept datatypes")
def list_concept_datatypes(
    service: ConceptServiceDep,
    name: str | None = None,
    include_retired: bool = True,
) -> list[ConceptDatatype]:
    """List datatypes, or only those whose name starts with ``name``."""
    if name:
        return service.get_concept_datatypes(name)
    return service.get_all_concept_datatypes(include_retired)


@router.get("/{concept_datatype_id}", response_model=ConceptDatatypeResponse, summary="Get a concept datatype")
def get_concept_datatype(concept_datatype_id: int, service: ConceptServiceDep) -> ConceptDatatype:
    return load_concept_datatype(service, concept_datatype_id)


@router.post(
    "",
    response_model=ConceptDatatypeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a concept datatype",
)
def create_concept_datatype(request: ConceptDatatypeCreate, service: ConceptServiceDep) -> ConceptDatatype:
    datatype = ConceptDatatype(
        name=request.name,
        hl7_abbreviation=request.hl7_abbreviation,
        description=request.description,
    )
    return service.save_concept_datatype(datatype)


@router.delete(
    "/{concept_datatype_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Purge a concept datatype",
)
def purge_concept_datatype(concept_datatype_id: int, service: ConceptServiceDep) -> Response:
    service.purge_concept_datatype(load_concept_datatype(service, concept_datatype_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
