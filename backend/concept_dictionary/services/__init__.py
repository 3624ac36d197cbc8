"""Services for the concept dictionary.

- ConceptService: dictionary operations (concepts, drugs, sets, proposals)
- concept_words: tokenizing names and phrases for the word index
- concept_search: SQL for ranked concept word searches
"""

from concept_dictionary.services.concept_search import ConceptSearchCriteria, build_search_statement
from concept_dictionary.services.concept_service import ConceptService
from concept_dictionary.services.concept_words import STOP_WORDS, get_unique_words, make_concept_words

__all__ = [
    "ConceptSearchCriteria",
    "ConceptService",
    "STOP_WORDS",
    "build_search_statement",
    "get_unique_words",
    "make_concept_words",
]
