"""API routers for the concept dictionary."""

from concept_dictionary.api.concept_classes import router as concept_classes_router
from concept_dictionary.api.concept_datatypes import router as concept_datatypes_router
from concept_dictionary.api.concepts import router as concepts_router
from concept_dictionary.api.drugs import router as drugs_router
from concept_dictionary.api.maintenance import router as maintenance_router
from concept_dictionary.api.proposals import router as proposals_router

__all__ = [
    "concept_classes_router",
    "concept_datatypes_router",
    "concepts_router",
    "drugs_router",
    "maintenance_router",
    "proposals_router",
]
