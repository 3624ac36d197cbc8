"""Tests for concept word tokenizing and index row generation."""

from concept_dictionary.models import Concept
from concept_dictionary.services.concept_words import (
    STOP_WORDS,
    get_unique_words,
    make_concept_words,
    split_words,
)


class TestSplitWords:
    """Tests for split_words."""

    def test_upper_cases_words(self) -> None:
        assert split_words("Blood pressure") == ["BLOOD", "PRESSURE"]

    def test_punctuation_separates_words(self) -> None:
        assert split_words("x-ray,chest/abdomen") == ["X", "RAY", "CHEST", "ABDOMEN"]

    def test_underscore_separates_words(self) -> None:
        assert split_words("blood_pressure") == ["BLOOD", "PRESSURE"]

    def test_keeps_duplicates(self) -> None:
        assert split_words("fever fever") == ["FEVER", "FEVER"]

    def test_accented_letters_are_word_characters(self) -> None:
        assert split_words("Fièvre") == ["FIÈVRE"]

    def test_empty_text(self) -> None:
        assert split_words("") == []
        assert split_words("  -- ") == []


class TestGetUniqueWords:
    """Tests for get_unique_words."""

    def test_drops_stop_words(self) -> None:
        assert get_unique_words("Fever of unknown origin") == ["FEVER", "UNKNOWN", "ORIGIN"]

    def test_drops_duplicates_keeping_first_seen_order(self) -> None:
        assert get_unique_words("fever Malaria FEVER malaria") == ["FEVER", "MALARIA"]

    def test_only_stop_words_gives_empty_list(self) -> None:
        assert get_unique_words("the and of a") == []

    def test_all_stop_words_defined(self) -> None:
        assert STOP_WORDS == {"A", "AND", "AT", "BUT", "BY", "FOR", "HAS", "OF", "THE", "TO"}

    def test_long_words_are_truncated(self) -> None:
        word = "X" * 80
        assert get_unique_words(word) == ["X" * 50]


class TestMakeConceptWords:
    """Tests for make_concept_words."""

    def _concept(self) -> Concept:
        concept = Concept(concept_id=42)
        concept.add_name("Fever of unknown origin", "en")
        concept.add_synonym("FUO", "en")
        return concept

    def test_name_words_have_empty_synonym(self) -> None:
        words = make_concept_words(self._concept())
        name_words = {w.word for w in words if w.synonym == ""}
        assert name_words == {"FEVER", "UNKNOWN", "ORIGIN"}

    def test_synonym_words_carry_synonym_text(self) -> None:
        words = make_concept_words(self._concept())
        synonym_words = [w for w in words if w.is_synonym]
        assert len(synonym_words) == 1
        assert synonym_words[0].word == "FUO"
        assert synonym_words[0].synonym == "FUO"
        assert synonym_words[0].name == "FUO"

    def test_rows_keep_full_text_and_concept_id(self) -> None:
        words = make_concept_words(self._concept())
        fever = next(w for w in words if w.word == "FEVER")
        assert fever.name == "Fever of unknown origin"
        assert fever.concept_id == 42
        assert fever.locale == "en"

    def test_each_locale_gets_its_own_rows(self) -> None:
        concept = Concept(concept_id=7)
        concept.add_name("Malaria", "en")
        concept.add_name("Paludisme", "fr")
        words = {(w.word, w.locale) for w in make_concept_words(concept)}
        assert words == {("MALARIA", "en"), ("PALUDISME", "fr")}

    def test_repeated_word_in_one_name_gives_one_row(self) -> None:
        concept = Concept(concept_id=3)
        concept.add_name("Pain, chest pain", "en")
        words = [w.word for w in make_concept_words(concept)]
        assert sorted(words) == ["CHEST", "PAIN"]

    def test_same_word_in_name_and_synonym_gives_two_rows(self) -> None:
        concept = Concept(concept_id=3)
        concept.add_name("Fever", "en")
        concept.add_synonym("Fever NOS", "en")
        fever_rows = [w for w in make_concept_words(concept) if w.word == "FEVER"]
        assert {w.synonym for w in fever_rows} == {"", "Fever NOS"}

    def test_stop_words_are_not_indexed(self) -> None:
        concept = Concept(concept_id=9)
        concept.add_name("The end of the road", "en")
        words = {w.word for w in make_concept_words(concept)}
        assert words == {"END", "ROAD"}
