"""Background jobs for the concept dictionary."""

from concept_dictionary.jobs.dictionary_maintenance import rebuild_concept_set_derived, rebuild_concept_words

__all__ = ["rebuild_concept_set_derived", "rebuild_concept_words"]
