"""SQLAlchemy ORM models for the concept dictionary.

Models:
- ConceptClass, ConceptDatatype
- Concept, ConceptName, ConceptSynonym, ConceptNumeric
- ConceptAnswer, ConceptSet, ConceptSetDerived
- ConceptWord (search index)
- Drug
- ConceptProposal
- GlobalProperty
"""

from concept_dictionary.core.database import Base
from concept_dictionary.models.concept import (
    Concept,
    ConceptAnswer,
    ConceptClass,
    ConceptDatatype,
    ConceptName,
    ConceptNumeric,
    ConceptSet,
    ConceptSetDerived,
    ConceptSynonym,
    ConceptWord,
)
from concept_dictionary.models.drug import Drug
from concept_dictionary.models.global_property import CONCEPTS_LOCKED_PROPERTY, GlobalProperty
from concept_dictionary.models.proposal import ConceptProposal

__all__ = [
    "Base",
    "Concept",
    "ConceptAnswer",
    "ConceptClass",
    "ConceptDatatype",
    "ConceptName",
    "ConceptNumeric",
    "ConceptSet",
    "ConceptSetDerived",
    "ConceptSynonym",
    "ConceptWord",
    "Drug",
    "ConceptProposal",
    "GlobalProperty",
    "CONCEPTS_LOCKED_PROPERTY",
]
