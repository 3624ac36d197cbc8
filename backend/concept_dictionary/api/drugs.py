"""Drug API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from concept_dictionary.api.dependencies import ConceptServiceDep, load_concept
from concept_dictionary.core.exceptions import ObjectNotFoundException
from concept_dictionary.models import Drug
from concept_dictionary.schemas import DrugCreate, DrugResponse, RetireRequest
from concept_dictionary.services.concept_service import ConceptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drugs", tags=["Drugs"])


def load_drug(service: ConceptService, drug_id: int | str) -> Drug:
    drug = service.get_drug(drug_id)
    if drug is None:
        raise ObjectNotFoundException("Drug", drug_id)
    return drug


@router.get("", response_model=list[DrugResponse], summary="List drugs")
def list_drugs(service: ConceptServiceDep, include_retired: bool = True) -> list[Drug]:
    return service.get_all_drugs(include_retired)


@router.get(
    "/search",
    response_model=list[DrugResponse],
    summary="Search drugs",
    description="Match drug names containing every word, or drugs whose concept matches the phrase.",
)
def search_drugs(
    service: ConceptServiceDep,
    phrase: Annotated[str, Query(min_length=1)],
    include_retired: bool = False,
) -> list[Drug]:
    return service.find_drugs(phrase, include_retired)


@router.get("/{drug_id_or_name}", response_model=DrugResponse, summary="Get a drug")
def get_drug(drug_id_or_name: str, service: ConceptServiceDep) -> Drug:
    return load_drug(service, drug_id_or_name)


@router.post(
    "",
    response_model=DrugResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a drug",
)
def create_drug(request: DrugCreate, service: ConceptServiceDep) -> Drug:
    drug = Drug(
        name=request.name,
        concept=load_concept(service, request.concept_id),
        combination=request.combination,
        dosage_form=load_concept(service, request.dosage_form_id) if request.dosage_form_id else None,
        dose_strength=request.dose_strength,
        maximum_daily_dose=request.maximum_daily_dose,
        minimum_daily_dose=request.minimum_daily_dose,
        route=load_concept(service, request.route_id) if request.route_id else None,
        units=request.units,
    )
    return service.save_drug(drug)


@router.post("/{drug_id}/retire", response_model=DrugResponse, summary="Retire a drug")
def retire_drug(drug_id: int, request: RetireRequest, service: ConceptServiceDep) -> Drug:
    return service.retire_drug(load_drug(service, drug_id), request.reason)


@router.delete("/{drug_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Purge a drug")
def purge_drug(drug_id: int, service: ConceptServiceDep) -> Response:
    service.purge_drug(load_drug(service, drug_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
