"""Seed script for loading the starter concept dictionary into the database.

Usage:
    python -m concept_dictionary.scripts.seed_dictionary

    # Keep existing rows and add the fixture on top
    python -m concept_dictionary.scripts.seed_dictionary --no-clear

This script loads concept classes, datatypes, concepts, drugs and
concept proposals from fixtures/concept_dictionary.json. Concepts are
saved through the ConceptService, so the concept word index and the
derived concept set table are built as part of the seed.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from sqlalchemy import func, select, text
from sqlalchemy.orm import Session

from concept_dictionary.core.database import get_sync_engine
from concept_dictionary.core.privileges import UserContext
from concept_dictionary.models import (
    Concept,
    ConceptAnswer,
    ConceptClass,
    ConceptDatatype,
    ConceptName,
    ConceptNumeric,
    ConceptProposal,
    ConceptSet,
    ConceptSetDerived,
    ConceptSynonym,
    ConceptWord,
    Drug,
)
from concept_dictionary.services.concept_service import ConceptService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_SCRIPT_DIR = Path(__file__).parent
_BACKEND_DIR = _SCRIPT_DIR.parent.parent  # concept_dictionary/scripts -> concept_dictionary -> backend
FIXTURES_DIR = _BACKEND_DIR / "fixtures"
DICTIONARY_FILE = FIXTURES_DIR / "concept_dictionary.json"

# Child tables first (foreign key order)
_CLEAR_ORDER = [
    ConceptSetDerived,
    ConceptWord,
    ConceptProposal,
    ConceptAnswer,
    Drug,
    ConceptSet,
    ConceptNumeric,
    ConceptSynonym,
    ConceptName,
    Concept,
    ConceptDatatype,
    ConceptClass,
]

# Tables seeded with explicit ids whose sequences must be advanced on PostgreSQL
_SERIAL_KEYS = [
    (ConceptClass, "concept_class_id"),
    (ConceptDatatype, "concept_datatype_id"),
    (Concept, "concept_id"),
    (Drug, "drug_id"),
]


def load_dictionary_fixture(path: Path = DICTIONARY_FILE) -> dict[str, Any]:
    """Load dictionary data from a JSON fixture file."""
    if not path.exists():
        raise FileNotFoundError(f"Dictionary fixture not found: {path}")

    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)
        return data


def clear_dictionary(session: Session) -> None:
    """Delete every dictionary row. Global properties are kept."""
    for model in _CLEAR_ORDER:
        session.execute(model.__table__.delete())
    session.commit()
    # Table deletes bypass the identity map
    session.expunge_all()
    logger.info("Cleared existing dictionary data")


def reset_sequences(session: Session) -> None:
    """Move PostgreSQL id sequences past the explicitly seeded ids."""
    if session.get_bind().dialect.name != "postgresql":
        return
    for model, column in _SERIAL_KEYS:
        table = model.__tablename__
        max_id = session.scalar(select(func.max(getattr(model, column)))) or 0
        if max_id:
            session.execute(
                text("SELECT setval(pg_get_serial_sequence(:table, :column), :value)"),
                {"table": table, "column": column, "value": max_id},
            )
    session.commit()


def seed_concepts(
    service: ConceptService,
    concepts_data: list[dict],
    classes: dict[str, ConceptClass],
    datatypes: dict[str, ConceptDatatype],
) -> dict[int, Concept]:
    """Seed concepts in two passes: names first, then answers and members.

    Returns:
        Mapping of concept_id to the saved Concept.
    """
    concepts: dict[int, Concept] = {}

    for concept_data in concepts_data:
        concept = Concept(
            concept_id=concept_data["concept_id"],
            concept_class=classes[concept_data["class"]],
            datatype=datatypes[concept_data["datatype"]],
            is_set=concept_data.get("is_set", False),
        )
        for locale, name in concept_data["names"].items():
            concept.add_name(name, locale)
        for locale, synonyms in concept_data.get("synonyms", {}).items():
            for synonym in synonyms:
                concept.add_synonym(synonym, locale)
        if "numeric" in concept_data:
            concept.numeric = ConceptNumeric(**concept_data["numeric"])
        concepts[concept.concept_id] = service.save_concept(concept)

    for concept_data in concepts_data:
        concept = concepts[concept_data["concept_id"]]
        answers = concept_data.get("answers", [])
        members = concept_data.get("set_members", [])
        for answer_id in answers:
            concept.add_answer(concepts[answer_id])
        for member_id in members:
            concept.add_set_member(concepts[member_id])
        if answers or members:
            service.save_concept(concept)
        if "retired" in concept_data:
            service.retire_concept(concept, concept_data["retired"])

    logger.info(f"Seeded {len(concepts)} concepts")
    return concepts


def seed_dictionary(session: Session, data: dict[str, Any], clear_existing: bool = True) -> dict[str, int]:
    """Load a dictionary fixture into the database.

    Args:
        session: Session to seed through.
        data: Parsed fixture (see fixtures/concept_dictionary.json).
        clear_existing: If True, clear existing dictionary data before seeding.

    Returns:
        Row counts per kind of object seeded.
    """
    logger.info("Starting concept dictionary seed...")
    if clear_existing:
        clear_dictionary(session)

    service = ConceptService(session, UserContext.system())

    classes = {
        row["name"]: service.save_concept_class(ConceptClass(**row))
        for row in data.get("concept_classes", [])
    }
    datatypes = {
        row["name"]: service.save_concept_datatype(ConceptDatatype(**row))
        for row in data.get("concept_datatypes", [])
    }
    concepts = seed_concepts(service, data.get("concepts", []), classes, datatypes)

    drug_count = 0
    for row in data.get("drugs", []):
        drug = Drug(**{k: v for k, v in row.items() if k not in ("concept_id", "dosage_form_id", "route_id")})
        drug.concept = concepts[row["concept_id"]]
        drug.dosage_form = concepts.get(row.get("dosage_form_id"))
        drug.route = concepts.get(row.get("route_id"))
        service.save_drug(drug)
        drug_count += 1

    proposal_count = 0
    for row in data.get("concept_proposals", []):
        proposal = ConceptProposal(
            original_text=row["original_text"],
            obs_concept=concepts.get(row.get("obs_concept_id")),
            comments=row.get("comments"),
            locale=row.get("locale"),
        )
        service.save_concept_proposal(proposal)
        proposal_count += 1

    derived_rows = service.update_concept_set_derived()
    reset_sequences(session)

    counts = {
        "concept_classes": len(classes),
        "concept_datatypes": len(datatypes),
        "concepts": len(concepts),
        "drugs": drug_count,
        "concept_proposals": proposal_count,
        "concept_set_derived": derived_rows,
    }
    logger.info(f"Concept dictionary seed completed: {counts}")
    return counts


def main() -> None:
    """Entry point for running seed script."""
    parser = argparse.ArgumentParser(description="Seed the concept dictionary from a JSON fixture")
    parser.add_argument(
        "--fixture",
        type=Path,
        default=DICTIONARY_FILE,
        help=f"Fixture file to load (default: {DICTIONARY_FILE})",
    )
    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Keep existing dictionary rows",
    )
    args = parser.parse_args()

    try:
        data = load_dictionary_fixture(args.fixture)
        with Session(get_sync_engine()) as session:
            seed_dictionary(session, data, clear_existing=not args.no_clear)
    except Exception as e:
        logger.error(f"Failed to seed concept dictionary: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
