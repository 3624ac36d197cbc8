"""Shared FastAPI dependencies for the dictionary routers."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from concept_dictionary.core.database import get_session
from concept_dictionary.core.exceptions import ObjectNotFoundException
from concept_dictionary.core.security import RequireUser
from concept_dictionary.models import Concept, ConceptClass, ConceptDatatype
from concept_dictionary.services.concept_service import ConceptService

# Type alias for database session dependency
DbSession = Annotated[Session, Depends(get_session)]


def get_concept_service(session: DbSession, user: RequireUser) -> ConceptService:
    """ConceptService bound to the request's session and caller."""
    return ConceptService(session, user)


ConceptServiceDep = Annotated[ConceptService, Depends(get_concept_service)]


def load_concept(service: ConceptService, concept_id: int | str) -> Concept:
    """Fetch a concept or raise ObjectNotFoundException."""
    concept = service.get_concept(concept_id)
    if concept is None:
        raise ObjectNotFoundException("Concept", concept_id)
    return concept


def load_concept_class(service: ConceptService, concept_class_id: int) -> ConceptClass:
    concept_class = service.get_concept_class(concept_class_id)
    if concept_class is None:
        raise ObjectNotFoundException("Concept class", concept_class_id)
    return concept_class


def load_concept_datatype(service: ConceptService, concept_datatype_id: int) -> ConceptDatatype:
    datatype = service.get_concept_datatype(concept_datatype_id)
    if datatype is None:
        raise ObjectNotFoundException("Concept datatype", concept_datatype_id)
    return datatype
