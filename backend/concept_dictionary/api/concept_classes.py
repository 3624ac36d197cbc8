"""Concept class API endpoints."""

from fastapi import APIRouter, Response, status

from concept_dictionary.api.dependencies import ConceptServiceDep, load_concept_class
from concept_dictionary.models import ConceptClass
from concept_dictionary.schemas import ConceptClassCreate, ConceptClassResponse, RetireRequest

router = APIRouter(prefix="/concept-classes", tags=["Concept Classes"])


@router.get("", response_model=list[ConceptClassResponse], summary="List concept classes")
def list_concept_classes(service: ConceptServiceDep, include_retired: bool = True) -> list[ConceptClass]:
    return service.get_all_concept_classes(include_retired)


@router.get("/{concept_class_id}", response_model=ConceptClassResponse, summary="Get a concept class")
def get_concept_class(concept_class_id: int, service: ConceptServiceDep) -> ConceptClass:
    return load_concept_class(service, concept_class_id)


@router.post(
    "",
    response_model=ConceptClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a concept class",
)
def create_concept_class(request: ConceptClassCreate, service: ConceptServiceDep) -> ConceptClass:
    return service.save_concept_class(ConceptClass(name=request.name, description=request.description))


@router.post(
    "/{concept_class_id}/retire",
    response_model=ConceptClassResponse,
    summary="Retire a concept class",
)
def retire_concept_class(concept_class_id: int, request: RetireRequest, service: ConceptServiceDep) -> ConceptClass:
    return service.retire_concept_class(load_concept_class(service, concept_class_id), request.reason)


@router.delete(
    "/{concept_class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Purge a concept class",
)
def purge_concept_class(concept_class_id: int, service: ConceptServiceDep) -> Response:
    service.purge_concept_class(load_concept_class(service, concept_class_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
