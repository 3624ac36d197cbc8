"""Rebuild the concept word index and derived concept sets.

Usage:
    # Rebuild the whole word index in this process
    python -m concept_dictionary.scripts.rebuild_index

    # Limit to a range of concept ids
    python -m concept_dictionary.scripts.rebuild_index --start 1000 --end 1999

    # Also recompute the derived concept set table
    python -m concept_dictionary.scripts.rebuild_index --sets

    # Hand the work to an RQ worker instead
    python -m concept_dictionary.scripts.rebuild_index --enqueue
"""

import argparse
import logging
import sys

from concept_dictionary.core.queue import QUEUE_NAMES, enqueue_job
from concept_dictionary.jobs.dictionary_maintenance import rebuild_concept_set_derived, rebuild_concept_words

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(description="Rebuild the concept word index")
    parser.add_argument("--start", type=int, default=None, help="Lowest concept id to reindex")
    parser.add_argument("--end", type=int, default=None, help="Highest concept id to reindex")
    parser.add_argument(
        "--sets",
        action="store_true",
        help="Also recompute the derived concept set table",
    )
    parser.add_argument(
        "--enqueue",
        action="store_true",
        help="Enqueue RQ jobs instead of running in this process",
    )
    args = parser.parse_args()

    if args.enqueue:
        job = enqueue_job(rebuild_concept_words, args.start, args.end, queue_name=QUEUE_NAMES["concept_words"])
        logger.info(f"Concept word rebuild queued as job {job.id}")
        if args.sets:
            job = enqueue_job(rebuild_concept_set_derived, queue_name=QUEUE_NAMES["concept_sets"])
            logger.info(f"Derived concept set rebuild queued as job {job.id}")
        return

    results = [rebuild_concept_words(args.start, args.end)]
    if args.sets:
        results.append(rebuild_concept_set_derived())

    failed = [r for r in results if not r["success"]]
    for result in failed:
        logger.error(f"Rebuild failed: {result['error']}")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
