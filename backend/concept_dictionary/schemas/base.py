"""Base schemas and enums for the concept dictionary."""

from enum import Enum


class ProposalState(str, Enum):
    """Lifecycle state of a concept proposal."""

    UNMAPPED = "UNMAPPED"
    CONCEPT = "CONCEPT"  # Mapped to an existing concept
    SYNONYM = "SYNONYM"  # Mapped, final text added as a synonym
    REJECT = "REJECT"


class ConceptSortField(str, Enum):
    """Columns get_all_concepts can sort by."""

    CONCEPT_ID = "concept_id"
    DATE_CREATED = "date_created"
    NAME = "name"


class DatatypeName(str, Enum):
    """Well-known concept datatype names."""

    NUMERIC = "Numeric"
    CODED = "Coded"
    TEXT = "Text"
    NA = "N/A"
    DOCUMENT = "Document"
    DATE = "Date"
    TIME = "Time"
    DATETIME = "Datetime"
    BOOLEAN = "Boolean"
