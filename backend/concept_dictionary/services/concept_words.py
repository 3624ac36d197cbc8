"""Tokenization for the concept word search index.

Concept names and synonyms are split into upper-cased words, one
ConceptWord row per distinct word. Search phrases go through the same
tokenizer so that a phrase word can be matched as a prefix of an
indexed word.
"""

import re

from concept_dictionary.core.locale import normalize_locale
from concept_dictionary.models import Concept, ConceptWord

# Words too common to narrow a search
STOP_WORDS = frozenset({"A", "AND", "AT", "BUT", "BY", "FOR", "HAS", "OF", "THE", "TO"})

# Anything that is not a letter or digit separates words
_SEPARATOR_PATTERN = re.compile(r"[\W_]+", re.UNICODE)

MAX_WORD_LENGTH = 50


def split_words(text: str) -> list[str]:
    """Split text into upper-cased words, keeping order and duplicates."""
    if not text:
        return []
    return [w for w in _SEPARATOR_PATTERN.sub(" ", text.upper()).split() if w]


def get_unique_words(phrase: str) -> list[str]:
    """Distinct searchable words of a phrase, in first-seen order.

    Stop words are dropped.

    Examples:
        >>> get_unique_words("Fever of unknown origin")
        ['FEVER', 'UNKNOWN', 'ORIGIN']
        >>> get_unique_words("  x-ray, chest  ")
        ['X', 'RAY', 'CHEST']
    """
    words = list(dict.fromkeys(w[:MAX_WORD_LENGTH] for w in split_words(phrase)))
    return [w for w in words if w not in STOP_WORDS]


def make_concept_words(concept: Concept) -> list[ConceptWord]:
    """Build the index rows for a concept from its names and synonyms.

    Name words get ``synonym=""``; synonym words carry the synonym text.
    Each (word, synonym, locale) combination appears once.
    """
    rows: dict[tuple[str, str, str], ConceptWord] = {}

    for concept_name in concept.names:
        locale = normalize_locale(concept_name.locale)
        for word in get_unique_words(concept_name.name):
            key = (word, "", locale)
            if key not in rows:
                rows[key] = ConceptWord(
                    concept_id=concept.concept_id,
                    word=word,
                    synonym="",
                    locale=locale,
                    name=concept_name.name,
                )

    for concept_synonym in concept.synonyms:
        locale = normalize_locale(concept_synonym.locale)
        for word in get_unique_words(concept_synonym.synonym):
            key = (word, concept_synonym.synonym, locale)
            if key not in rows:
                rows[key] = ConceptWord(
                    concept_id=concept.concept_id,
                    word=word,
                    synonym=concept_synonym.synonym,
                    locale=locale,
                    name=concept_synonym.synonym,
                )

    return list(rows.values())
