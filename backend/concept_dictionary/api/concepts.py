"""Concept API endpoints.

Provides endpoints for:
- Creating, updating, retiring and purging concepts
- Concept word search
- Browsing (previous/next concept, next free id, formulary)
- Coded answers and concept set membership
- The dictionary lock
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from concept_dictionary.api.dependencies import (
    ConceptServiceDep,
    load_concept,
    load_concept_class,
    load_concept_datatype,
)
from concept_dictionary.core.config import settings
from concept_dictionary.core.exceptions import ObjectNotFoundException
from concept_dictionary.core.locale import normalize_locale
from concept_dictionary.models import Concept, ConceptAnswer, ConceptNumeric, ConceptSet, ConceptSynonym
from concept_dictionary.schemas import (
    ConceptCreate,
    ConceptNumericSchema,
    ConceptResponse,
    ConceptSearchResponse,
    ConceptSetResponse,
    ConceptSortField,
    ConceptSummary,
    ConceptWordResponse,
    DrugResponse,
    LockStatus,
    NextIdResponse,
    RetireRequest,
)
from concept_dictionary.services.concept_service import ConceptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/concepts", tags=["Concepts"])


def apply_concept_payload(service: ConceptService, concept: Concept, payload: ConceptCreate) -> Concept:
    """Copy a create/update payload onto a new or existing concept.

    Names are updated in place per locale so the one-name-per-locale
    constraint holds during the flush. Answers and set members follow
    the payload order.
    """
    concept.concept_class = load_concept_class(service, payload.class_id)
    concept.datatype = load_concept_datatype(service, payload.datatype_id)
    concept.is_set = payload.is_set
    concept.version = payload.version

    wanted_locales = set()
    for name in payload.names:
        concept_name = concept.add_name(name.name, name.locale, name.short_name, name.description)
        wanted_locales.add(concept_name.locale)
    for concept_name in list(concept.names):
        if concept_name.locale not in wanted_locales:
            concept.names.remove(concept_name)

    concept.synonyms = [
        ConceptSynonym(synonym=synonym.synonym, locale=normalize_locale(synonym.locale))
        for synonym in payload.synonyms
    ]

    if payload.numeric is None:
        concept.numeric = None
    elif concept.numeric is None:
        concept.numeric = ConceptNumeric(**payload.numeric.model_dump())
    else:
        for field, value in payload.numeric.model_dump().items():
            setattr(concept.numeric, field, value)

    existing_answers = {answer.answer_concept_id: answer for answer in concept.answers}
    concept.answers = [
        existing_answers.get(answer_id) or ConceptAnswer(answer_concept=load_concept(service, answer_id))
        for answer_id in payload.answer_concept_ids
    ]

    existing_members = {member.concept_id: member for member in concept.set_members}
    members = []
    for weight, member_id in enumerate(payload.set_member_ids):
        membership = existing_members.get(member_id) or ConceptSet(concept=load_concept(service, member_id))
        membership.sort_weight = float(weight)
        members.append(membership)
    concept.set_members = members

    return concept


@router.get(
    "",
    response_model=list[ConceptSummary],
    summary="List concepts",
)
def list_concepts(
    service: ConceptServiceDep,
    sort_by: ConceptSortField = ConceptSortField.CONCEPT_ID,
    asc: bool = True,
    include_retired: bool = True,
) -> list[Concept]:
    return service.get_all_concepts(sort_by, asc, include_retired)


@router.get(
    "/search",
    response_model=ConceptSearchResponse,
    summary="Search concepts",
    description="Prefix search over concept names and synonyms in the requested locales.",
)
def search_concepts(
    service: ConceptServiceDep,
    phrase: Annotated[str, Query(min_length=1, description="Search text")],
    locale: Annotated[list[str] | None, Query(description="Locales in order of preference")] = None,
    include_retired: bool = False,
    class_id: Annotated[list[int] | None, Query(description="Only these concept classes")] = None,
    exclude_class_id: Annotated[list[int] | None, Query(description="Not these concept classes")] = None,
    datatype_id: Annotated[list[int] | None, Query(description="Only these datatypes")] = None,
    exclude_datatype_id: Annotated[list[int] | None, Query(description="Not these datatypes")] = None,
    start: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int | None, Query(ge=1)] = None,
) -> ConceptSearchResponse:
    locales = locale or [settings.default_locale]
    size = size or settings.max_search_results

    words = service.get_concept_words(
        phrase,
        locales,
        include_retired=include_retired,
        require_classes=[load_concept_class(service, i) for i in class_id or []],
        exclude_classes=[load_concept_class(service, i) for i in exclude_class_id or []],
        require_datatypes=[load_concept_datatype(service, i) for i in datatype_id or []],
        exclude_datatypes=[load_concept_datatype(service, i) for i in exclude_datatype_id or []],
        start=start,
        size=size,
    )
    return ConceptSearchResponse(
        phrase=phrase,
        locales=locales,
        start=start,
        size=size,
        results=[ConceptWordResponse.model_validate(word) for word in words],
    )


@router.get("/next-id", response_model=NextIdResponse, summary="Next free concept id")
def next_available_id(service: ConceptServiceDep) -> NextIdResponse:
    return NextIdResponse(concept_id=service.get_next_available_id())


@router.get(
    "/formulary",
    response_model=list[ConceptSummary],
    summary="Concepts with drugs",
)
def concepts_with_drugs(service: ConceptServiceDep) -> list[Concept]:
    return service.get_concepts_with_drugs_in_formulary()


@router.get("/lock", response_model=LockStatus, summary="Dictionary lock state")
def get_lock(service: ConceptServiceDep) -> LockStatus:
    return LockStatus(locked=service.is_locked())


@router.put("/lock", response_model=LockStatus, summary="Lock or unlock concept changes")
def set_lock(request: LockStatus, service: ConceptServiceDep) -> LockStatus:
    service.set_concepts_locked(request.locked)
    return LockStatus(locked=service.is_locked())


@router.post(
    "",
    response_model=ConceptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a concept",
)
def create_concept(request: ConceptCreate, service: ConceptServiceDep) -> Concept:
    concept = apply_concept_payload(service, Concept(), request)
    return service.save_concept(concept)


@router.get(
    "/{concept_id_or_name}",
    response_model=ConceptResponse,
    summary="Get a concept",
    description="Look a concept up by id, or by exact name when the value is not numeric.",
)
def get_concept(concept_id_or_name: str, service: ConceptServiceDep) -> Concept:
    return load_concept(service, concept_id_or_name)


@router.put(
    "/{concept_id}",
    response_model=ConceptResponse,
    summary="Update a concept",
)
def update_concept(concept_id: int, request: ConceptCreate, service: ConceptServiceDep) -> Concept:
    concept = apply_concept_payload(service, load_concept(service, concept_id), request)
    return service.save_concept(concept)


@router.post(
    "/{concept_id}/retire",
    response_model=ConceptResponse,
    summary="Retire a concept",
)
def retire_concept(concept_id: int, request: RetireRequest, service: ConceptServiceDep) -> Concept:
    return service.retire_concept(load_concept(service, concept_id), request.reason)


@router.delete(
    "/{concept_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Purge a concept",
)
def purge_concept(concept_id: int, service: ConceptServiceDep) -> Response:
    service.purge_concept(load_concept(service, concept_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{concept_id}/prev", response_model=ConceptSummary, summary="Previous concept by id")
def previous_concept(concept_id: int, service: ConceptServiceDep) -> Concept:
    concept = service.get_prev_concept(load_concept(service, concept_id))
    if concept is None:
        raise ObjectNotFoundException("Concept before", concept_id)
    return concept


@router.get("/{concept_id}/next", response_model=ConceptSummary, summary="Next concept by id")
def next_concept(concept_id: int, service: ConceptServiceDep) -> Concept:
    concept = service.get_next_concept(load_concept(service, concept_id))
    if concept is None:
        raise ObjectNotFoundException("Concept after", concept_id)
    return concept


@router.get("/{concept_id}/numeric", response_model=ConceptNumericSchema, summary="Numeric ranges")
def concept_numeric(concept_id: int, service: ConceptServiceDep) -> ConceptNumeric:
    numeric = service.get_concept_numeric(concept_id)
    if numeric is None:
        raise ObjectNotFoundException("Concept numeric", concept_id)
    return numeric


@router.get(
    "/{concept_id}/answers",
    response_model=list[ConceptWordResponse],
    summary="Search the coded answers of a concept",
)
def search_answers(
    concept_id: int,
    service: ConceptServiceDep,
    phrase: Annotated[str, Query(min_length=1)],
    locale: str | None = None,
    include_retired: bool = False,
) -> list:
    concept = load_concept(service, concept_id)
    return service.get_concept_answers(phrase, locale, concept, include_retired)


@router.get(
    "/{concept_id}/questions",
    response_model=list[ConceptSummary],
    summary="Concepts that use this concept as an answer",
)
def questions_for_answer(concept_id: int, service: ConceptServiceDep) -> list[Concept]:
    return service.get_questions_for_answer(load_concept(service, concept_id))


@router.get(
    "/{concept_id}/members",
    response_model=list[ConceptSetResponse],
    summary="Direct members of a set",
)
def set_members(concept_id: int, service: ConceptServiceDep) -> list:
    return service.get_concept_sets_by_concept(load_concept(service, concept_id))


@router.get(
    "/{concept_id}/members/expanded",
    response_model=list[ConceptSummary],
    summary="All leaf members of a set",
)
def expanded_set_members(concept_id: int, service: ConceptServiceDep) -> list[Concept]:
    return service.get_concepts_by_concept_set(load_concept(service, concept_id))


@router.get(
    "/{concept_id}/sets",
    response_model=list[ConceptSetResponse],
    summary="Sets containing the concept",
)
def containing_sets(concept_id: int, service: ConceptServiceDep) -> list:
    return service.get_sets_containing_concept(load_concept(service, concept_id))


@router.get(
    "/{concept_id}/drugs",
    response_model=list[DrugResponse],
    summary="Drugs for a concept",
)
def concept_drugs(concept_id: int, service: ConceptServiceDep) -> list:
    return service.get_drugs_by_concept(load_concept(service, concept_id))
