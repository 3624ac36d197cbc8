"""Dictionary maintenance job functions.

Rebuilding the concept word index or the derived concept set table
touches every concept, so both run on an RQ worker rather than inside
a request.
"""

import logging

from sqlalchemy.orm import Session

from concept_dictionary.core.database import get_sync_engine
from concept_dictionary.core.privileges import UserContext
from concept_dictionary.models import Concept
from concept_dictionary.services.concept_service import ConceptService

logger = logging.getLogger(__name__)


def rebuild_concept_words(start: int | None = None, end: int | None = None) -> dict:
    """Regenerate the concept word rows for a range of concept ids.

    This function is executed by an RQ worker.

    Args:
        start: Lowest concept id to reindex, or None for no lower bound.
        end: Highest concept id to reindex, or None for no upper bound.

    Returns:
        Dictionary with the number of concepts processed.
    """
    logger.info(f"Starting concept word rebuild for concept ids {start}..{end}")

    try:
        with Session(get_sync_engine()) as session:
            service = ConceptService(session, UserContext.system())
            processed = service.update_concept_words(start, end)

            logger.info(f"Concept word rebuild completed, concept_count={processed}")
            return {"success": True, "start": start, "end": end, "concept_count": processed}

    except Exception as e:
        logger.exception(f"Concept word rebuild failed: {e}")
        return {"success": False, "error": str(e)}


def rebuild_concept_set_derived(concept_id: int | None = None) -> dict:
    """Recompute the derived concept set table for one set or all sets.

    This function is executed by an RQ worker.

    Args:
        concept_id: Set concept to recompute, or None for every set.

    Returns:
        Dictionary with the number of derived rows written.
    """
    logger.info(f"Starting derived concept set rebuild for concept_id={concept_id}")

    try:
        with Session(get_sync_engine()) as session:
            service = ConceptService(session, UserContext.system())

            concept = None
            if concept_id is not None:
                concept = session.get(Concept, concept_id)
                if concept is None:
                    logger.error(f"Concept not found: {concept_id}")
                    return {"success": False, "error": "Concept not found"}

            rows = service.update_concept_set_derived(concept)

            logger.info(f"Derived concept set rebuild completed, row_count={rows}")
            return {"success": True, "concept_id": concept_id, "row_count": rows}

    except Exception as e:
        logger.exception(f"Derived concept set rebuild failed: {e}")
        return {"success": False, "error": str(e)}
