"""Tests for the dictionary maintenance API endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from concept_dictionary.jobs.dictionary_maintenance import rebuild_concept_set_derived, rebuild_concept_words

API = "/api/v1/maintenance"


class TestConceptWordsRebuild:
    """Tests for POST /maintenance/concept-words."""

    @pytest.mark.asyncio
    async def test_enqueues_job(self, client: AsyncClient) -> None:
        """Test the rebuild is handed to the job queue."""
        with patch("concept_dictionary.api.maintenance.enqueue_job") as mock_enqueue:
            mock_enqueue.return_value = MagicMock(id="job-123")
            response = await client.post(f"{API}/concept-words", params={"start": 1, "end": 50})

        assert response.status_code == 202
        assert response.json() == {"job_id": "job-123", "status": "queued", "result": None}
        args, kwargs = mock_enqueue.call_args
        assert args == (rebuild_concept_words, 1, 50)
        assert kwargs["queue_name"] == "concept_words"

    @pytest.mark.asyncio
    async def test_sync_runs_inline(self, client: AsyncClient, make_concept) -> None:
        """Test sync=true rebuilds without touching the queue."""
        make_concept("Fever")
        make_concept("Malaria")

        with patch("concept_dictionary.api.maintenance.enqueue_job") as mock_enqueue:
            response = await client.post(f"{API}/concept-words", params={"sync": True})

        mock_enqueue.assert_not_called()
        data = response.json()
        assert data["status"] == "finished"
        assert data["job_id"] is None
        assert data["result"] == {"concept_count": 2}

    @pytest.mark.asyncio
    async def test_redis_down_is_503(self, client: AsyncClient) -> None:
        with patch(
            "concept_dictionary.api.maintenance.enqueue_job",
            side_effect=RedisConnectionError("refused"),
        ):
            response = await client.post(f"{API}/concept-words")

        assert response.status_code == 503
        assert "sync=true" in response.json()["detail"]


class TestConceptSetDerivedRebuild:
    """Tests for POST /maintenance/concept-set-derived."""

    @pytest.mark.asyncio
    async def test_enqueues_job_for_one_set(self, client: AsyncClient) -> None:
        with patch("concept_dictionary.api.maintenance.enqueue_job") as mock_enqueue:
            mock_enqueue.return_value = MagicMock(id="job-456")
            response = await client.post(f"{API}/concept-set-derived", params={"concept_id": 7})

        assert response.json()["job_id"] == "job-456"
        args, kwargs = mock_enqueue.call_args
        assert args == (rebuild_concept_set_derived, 7)
        assert kwargs["queue_name"] == "concept_sets"

    @pytest.mark.asyncio
    async def test_sync_rebuilds_all_sets(self, client: AsyncClient, service, make_concept) -> None:
        """Test the inline rebuild reports the rows written."""
        fever = make_concept("Fever")
        cough = make_concept("Cough")
        symptoms = make_concept("Symptoms", concept_class="ConvSet", is_set=True)
        symptoms.add_set_member(fever)
        symptoms.add_set_member(cough)
        service.save_concept(symptoms)

        response = await client.post(f"{API}/concept-set-derived", params={"sync": True})

        assert response.json()["result"] == {"row_count": 2}

    @pytest.mark.asyncio
    async def test_sync_with_unknown_concept_is_404(self, client: AsyncClient, dictionary) -> None:
        response = await client.post(f"{API}/concept-set-derived", params={"sync": True, "concept_id": 999})
        assert response.status_code == 404


class TestJobStatus:
    """Tests for GET /maintenance/jobs/{job_id}."""

    @pytest.mark.asyncio
    async def test_finished_job_includes_result(self, client: AsyncClient) -> None:
        with (
            patch("concept_dictionary.api.maintenance.get_job_status", return_value="finished"),
            patch(
                "concept_dictionary.api.maintenance.get_job_result",
                return_value={"success": True, "concept_count": 12},
            ),
        ):
            response = await client.get(f"{API}/jobs/job-123")

        assert response.status_code == 200
        assert response.json() == {
            "job_id": "job-123",
            "status": "finished",
            "result": {"success": True, "concept_count": 12},
        }

    @pytest.mark.asyncio
    async def test_running_job_has_no_result(self, client: AsyncClient) -> None:
        with (
            patch("concept_dictionary.api.maintenance.get_job_status", return_value="started"),
            patch("concept_dictionary.api.maintenance.get_job_result") as mock_result,
        ):
            response = await client.get(f"{API}/jobs/job-123")

        mock_result.assert_not_called()
        assert response.json()["result"] is None

    @pytest.mark.asyncio
    async def test_unknown_job_is_404(self, client: AsyncClient) -> None:
        with patch("concept_dictionary.api.maintenance.get_job_status", return_value=None):
            response = await client.get(f"{API}/jobs/missing")

        assert response.status_code == 404
