"""Redis queue configuration and job management."""

import logging
from typing import Any
from uuid import UUID

from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job

from concept_dictionary.core.redis import get_redis

logger = logging.getLogger(__name__)

# Lazy initialized queues cache
_queues: dict[str, Queue] = {}

# Queue names for the dictionary maintenance jobs
QUEUE_NAMES = {
    "concept_words": "concept_words",
    "concept_sets": "concept_sets",
}


def get_queue(name: str = "default") -> Queue:
    """Get RQ queue with specified name.

    Uses cached queue instances to avoid creating multiple connections.

    Args:
        name: Queue name. Defaults to "default".

    Returns:
        RQ Queue instance.
    """
    if name not in _queues:
        _queues[name] = Queue(name=name, connection=get_redis())
    return _queues[name]


def enqueue_job(
    func: Any,
    *args: Any,
    queue_name: str = "default",
    job_timeout: int = 3600,
    job_id: str | UUID | None = None,
    **kwargs: Any,
) -> Job:
    """Enqueue a job to the Redis queue.

    Args:
        func: The function to execute.
        *args: Positional arguments for the function.
        queue_name: Name of the queue. Defaults to "default".
        job_timeout: Job timeout in seconds. Index rebuilds over a full
            dictionary are slow, so the default is one hour.
        job_id: Optional custom job ID (string or UUID).
        **kwargs: Keyword arguments for the function.

    Returns:
        RQ Job instance with job_id.
    """
    queue = get_queue(queue_name)
    job_id_str = str(job_id) if job_id is not None else None
    job = queue.enqueue(func, *args, job_timeout=job_timeout, job_id=job_id_str, **kwargs)
    logger.info(f"Enqueued {getattr(func, '__name__', func)} as job {job.id} on queue '{queue_name}'")
    return job


def get_job(job_id: str | UUID) -> Job | None:
    """Get job by ID.

    Returns:
        Job instance or None if not found.
    """
    try:
        return Job.fetch(str(job_id), connection=get_redis())
    except NoSuchJobError:
        return None


def get_job_status(job_id: str | UUID) -> str | None:
    """Get the current status of a job.

    Returns:
        Job status string ('queued', 'started', 'finished', 'failed') or None if not found.
    """
    job = get_job(job_id)
    if job is None:
        return None
    status = job.get_status()
    if status is None:
        return None
    return status.value if hasattr(status, "value") else str(status)


def get_job_result(job_id: str | UUID) -> Any:
    """Get the result of a completed job.

    Returns:
        Job result or None if job not found or not completed.
    """
    job = get_job(job_id)
    if job is None:
        return None
    return job.return_value()


def clear_queues() -> None:
    """Clear all queues and reset queue cache.

    Used primarily for testing cleanup.
    """
    for queue in _queues.values():
        queue.empty()
    _queues.clear()