"""SQL for searching concepts through the concept word index.

A concept matches a phrase when every word of the phrase is a prefix of
some indexed word taken from the same name or synonym, in an accepted
locale. Each concept is returned once, represented by its best-ranked
matching row, and results are ordered by a total, stable key so that
offset/limit windows never overlap.
"""

from dataclasses import dataclass, field

from sqlalchemy import ColumnElement, Select, and_, case, exists, func, select
from sqlalchemy.orm import aliased

from concept_dictionary.core.locale import locale_candidates, normalize_locale
from concept_dictionary.models import Concept, ConceptAnswer, ConceptWord


@dataclass
class ConceptSearchCriteria:
    """Filters for a concept word search.

    Class and datatype filters hold primary keys. Empty lists mean
    "no restriction".
    """

    words: list[str]
    phrase: str
    locales: list[str]
    include_retired: bool = False
    require_class_ids: list[int] = field(default_factory=list)
    exclude_class_ids: list[int] = field(default_factory=list)
    require_datatype_ids: list[int] = field(default_factory=list)
    exclude_datatype_ids: list[int] = field(default_factory=list)
    answers_to_concept_id: int | None = None


def word_match_criteria(word_table, words: list[str]) -> list[ColumnElement[bool]]:
    """WHERE clauses requiring every word to prefix-match within one text.

    The first word is matched on ``word_table`` itself; every further word
    must match another row of the same concept, synonym and locale.
    """
    criteria: list[ColumnElement[bool]] = [word_table.word.startswith(words[0], autoescape=True)]
    for word in words[1:]:
        other = aliased(ConceptWord)
        criteria.append(
            exists().where(
                other.concept_id == word_table.concept_id,
                other.synonym == word_table.synonym,
                other.locale == word_table.locale,
                other.word.startswith(word, autoescape=True),
            )
        )
    return criteria


def _locale_rank(locales: list[str]) -> tuple[list[str], ColumnElement[int]]:
    """Accepted stored locales and a CASE giving each its request position.

    A locale requested at position ``i`` ranks ``2 * i``. A language that
    is only valid as the fallback of a requested country locale ranks
    ``2 * i + 1``, so for ["en_GB"] "en_GB" rows rank 0 and "en" rows 1,
    and for ["en_GB", "en"] the "en" rows rank 2.
    """
    ranks: dict[str, int] = {}
    for index, requested in enumerate(locales):
        ranks.setdefault(normalize_locale(requested), 2 * index)
    for index, requested in enumerate(locales):
        for candidate in locale_candidates(requested)[1:]:
            ranks.setdefault(candidate, 2 * index + 1)
    rank = case(ranks, value=ConceptWord.locale, else_=2 * len(locales))
    return list(ranks), rank


def build_search_statement(
    criteria: ConceptSearchCriteria,
    start: int,
    size: int,
) -> Select[tuple[ConceptWord]]:
    """Build the SELECT returning one ranked ConceptWord per concept."""
    accepted_locales, locale_rank = _locale_rank(criteria.locales)
    phrase_text = criteria.phrase.strip().upper()
    upper_name = func.upper(ConceptWord.name)

    synonym_rank = case((ConceptWord.synonym == "", 0), else_=1)
    match_rank = case(
        (upper_name == phrase_text, 0),
        (upper_name.startswith(phrase_text, autoescape=True), 1),
        else_=2,
    )
    name_length = func.length(ConceptWord.name)

    row_number = func.row_number().over(
        partition_by=ConceptWord.concept_id,
        order_by=(
            locale_rank,
            synonym_rank,
            match_rank,
            name_length,
            ConceptWord.synonym,
            ConceptWord.locale,
            ConceptWord.word,
        ),
    )

    matches = (
        select(
            ConceptWord.concept_id,
            ConceptWord.word,
            ConceptWord.synonym,
            ConceptWord.locale,
            locale_rank.label("locale_rank"),
            synonym_rank.label("synonym_rank"),
            match_rank.label("match_rank"),
            name_length.label("name_length"),
            row_number.label("row_number"),
        )
        .join(Concept, Concept.concept_id == ConceptWord.concept_id)
        .where(ConceptWord.locale.in_(accepted_locales))
        .where(*word_match_criteria(ConceptWord, criteria.words))
    )

    if not criteria.include_retired:
        matches = matches.where(Concept.retired.is_(False))
    if criteria.require_class_ids:
        matches = matches.where(Concept.class_id.in_(criteria.require_class_ids))
    if criteria.exclude_class_ids:
        matches = matches.where(Concept.class_id.not_in(criteria.exclude_class_ids))
    if criteria.require_datatype_ids:
        matches = matches.where(Concept.datatype_id.in_(criteria.require_datatype_ids))
    if criteria.exclude_datatype_ids:
        matches = matches.where(Concept.datatype_id.not_in(criteria.exclude_datatype_ids))
    if criteria.answers_to_concept_id is not None:
        answer_ids = select(ConceptAnswer.answer_concept_id).where(
            ConceptAnswer.concept_id == criteria.answers_to_concept_id
        )
        matches = matches.where(ConceptWord.concept_id.in_(answer_ids))

    ranked = matches.subquery("ranked")

    return (
        select(ConceptWord)
        .join(
            ranked,
            and_(
                ConceptWord.concept_id == ranked.c.concept_id,
                ConceptWord.word == ranked.c.word,
                ConceptWord.synonym == ranked.c.synonym,
                ConceptWord.locale == ranked.c.locale,
            ),
        )
        .where(ranked.c.row_number == 1)
        .order_by(
            ranked.c.locale_rank,
            ranked.c.synonym_rank,
            ranked.c.match_rank,
            ranked.c.name_length,
            ranked.c.concept_id,
        )
        .offset(start)
        .limit(size)
    )
