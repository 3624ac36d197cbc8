"""Dictionary maintenance API endpoints.

Rebuilds of the concept word index and the derived concept set table
run as RQ jobs. ``sync=true`` runs the rebuild inside the request
instead, for small dictionaries and deployments without a worker.
"""

import logging

from fastapi import APIRouter, HTTPException, status
from redis.exceptions import RedisError

from concept_dictionary.api.dependencies import ConceptServiceDep, load_concept
from concept_dictionary.core.exceptions import APIAuthenticationException
from concept_dictionary.core.privileges import Privilege, UserContext
from concept_dictionary.core.queue import QUEUE_NAMES, enqueue_job, get_job_result, get_job_status
from concept_dictionary.core.security import RequireUser
from concept_dictionary.jobs.dictionary_maintenance import rebuild_concept_set_derived, rebuild_concept_words
from concept_dictionary.schemas import JobEnqueueResponse, JobStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


def require_manage_concepts(user: UserContext) -> None:
    """Queued jobs run as the system user, so check the caller up front."""
    if not user.has_privilege(Privilege.MANAGE_CONCEPTS):
        raise APIAuthenticationException(
            f"Privilege required: {Privilege.MANAGE_CONCEPTS.value}",
            privileges=[Privilege.MANAGE_CONCEPTS.value],
        )


def queue_unavailable(e: RedisError) -> HTTPException:
    logger.error(f"Could not enqueue maintenance job: {e}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Job queue unavailable. Retry later or use sync=true",
    )


@router.post(
    "/concept-words",
    response_model=JobEnqueueResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Rebuild the concept word index",
)
def rebuild_words(
    service: ConceptServiceDep,
    start: int | None = None,
    end: int | None = None,
    sync: bool = False,
) -> JobEnqueueResponse:
    require_manage_concepts(service.user)

    if sync:
        processed = service.update_concept_words(start, end)
        return JobEnqueueResponse(status="finished", result={"concept_count": processed})

    try:
        job = enqueue_job(rebuild_concept_words, start, end, queue_name=QUEUE_NAMES["concept_words"])
    except RedisError as e:
        raise queue_unavailable(e) from e
    return JobEnqueueResponse(job_id=job.id, status="queued")


@router.post(
    "/concept-set-derived",
    response_model=JobEnqueueResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Rebuild the derived concept set table",
)
def rebuild_set_derived(
    service: ConceptServiceDep,
    concept_id: int | None = None,
    sync: bool = False,
) -> JobEnqueueResponse:
    require_manage_concepts(service.user)

    if sync:
        concept = load_concept(service, concept_id) if concept_id is not None else None
        rows = service.update_concept_set_derived(concept)
        return JobEnqueueResponse(status="finished", result={"row_count": rows})

    try:
        job = enqueue_job(rebuild_concept_set_derived, concept_id, queue_name=QUEUE_NAMES["concept_sets"])
    except RedisError as e:
        raise queue_unavailable(e) from e
    return JobEnqueueResponse(job_id=job.id, status="queued")


@router.get("/jobs/{job_id}", response_model=JobStatusResponse, summary="Get maintenance job status")
def job_status(job_id: str, user: RequireUser) -> JobStatusResponse:
    try:
        job_state = get_job_status(job_id)
    except RedisError as e:
        raise queue_unavailable(e) from e
    if job_state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job with ID {job_id} not found",
        )
    result = get_job_result(job_id) if job_state == "finished" else None
    return JobStatusResponse(job_id=job_id, status=job_state, result=result)
