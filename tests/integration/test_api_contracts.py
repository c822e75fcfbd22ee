"""
Integration Tests for API Contracts
===================================

Integration tests for the FastAPI endpoints with the image generator and the
canvas site replaced by fakes. Tests request/response validation and API
contract compliance.
"""

import io
import time
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from PIL import Image, ImageDraw

from canvas_art.api.main import create_app
from canvas_art.core.imaging.acquisition import UpstreamHTTPError
from canvas_art.core.jobs.manager import JobManager, SOFT_FAILURE_MESSAGE
from canvas_art.core.palette import PALETTE
from canvas_art.core.replay.errors import ReplayTimeoutError

from tests.utils.mocks import FakeReplayEngine


def fox_png() -> bytes:
    """Grid-sized raster with a 4x4 green block at the origin."""
    image = Image.new("RGB", (48, 32), (0, 0, 0))
    ImageDraw.Draw(image).rectangle((0, 0, 3, 3), fill=PALETTE[1].rgb)
    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


class TestArtAPI:
    """Test preview, publish and status endpoints."""

    @pytest.fixture
    def engine(self):
        return FakeReplayEngine()

    @pytest.fixture
    def client(self, engine, test_settings):
        """Test client with a fake replay engine installed."""
        with TestClient(create_app()) as test_client:
            test_client.app.state.job_manager = JobManager(engine=engine, settings=test_settings)
            yield test_client

    @pytest.fixture
    def generator(self):
        mock = AsyncMock(return_value=fox_png())
        with patch("canvas_art.api.routes.art.generate_image", mock):
            yield mock

    def wait_for_terminal(self, client, job_id, attempts=100):
        for _ in range(attempts):
            data = client.get(f"/api/v1/status/{job_id}").json()
            if data["status"] in ("done", "failed"):
                return data
            time.sleep(0.01)
        raise AssertionError(f"Job {job_id} did not finish: {data}")

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == "Canvas Art Publisher"
        assert data["endpoints"]["preview"] == "POST /api/v1/preview"

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["image_source"] == "pollinations"
        assert data["publishing_jobs"] == 0
        assert "X-Request-ID" in response.headers

    def test_palette(self, client):
        response = client.get("/api/v1/palette")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert (data["rows"], data["cols"]) == (32, 48)
        assert len(data["colors"]) == 12
        assert data["colors"][0] == {
            "index": 0,
            "name": "empty",
            "hex": "#000000",
            "background": True,
        }
        assert data["colors"][1]["name"] == "sfGFP"
        assert not data["colors"][1]["background"]

    def test_preview(self, client, generator):
        response = client.post("/api/v1/preview", json={"prompt": "  a red fox  "})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "previewed"
        assert data["color_counts"] == {"1": 16}
        assert data["svg"].startswith("<svg")
        assert data["svg"].count('fill="#1fea5c"') == 16
        generator.assert_awaited_once_with("a red fox")

    def test_preview_rejects_blank_prompt(self, client, generator):
        response = client.post("/api/v1/preview", json={"prompt": "   "})

        assert response.status_code == 422
        generator.assert_not_awaited()

    def test_preview_upstream_failure(self, client):
        failing = AsyncMock(side_effect=UpstreamHTTPError(503, "https://image.example.com/x"))
        with patch("canvas_art.api.routes.art.generate_image", failing):
            response = client.post("/api/v1/preview", json={"prompt": "fox"})

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        data = response.json()
        assert data["error_code"] == "UPSTREAM_GENERATION_ERROR"
        assert data["details"]["upstream_status"] == 503
        assert data["request_id"]

    def test_publish_flow(self, client, generator, engine):
        job_id = client.post("/api/v1/preview", json={"prompt": "a red fox"}).json()["job_id"]

        response = client.post("/api/v1/publish", json={"job_id": job_id, "title": "Fox"})
        assert response.status_code == status.HTTP_202_ACCEPTED
        assert response.json() == {"job_id": job_id, "status": "publishing"}

        data = self.wait_for_terminal(client, job_id)
        assert data["status"] == "done"
        assert data["url"] == engine.url
        assert data["error"] is None
        assert engine.calls[0]["title"] == "Fox"
        assert engine.calls[0]["prompt"] == "a red fox"

    def test_publish_soft_failure(self, client, generator, engine):
        engine.url = None
        job_id = client.post("/api/v1/preview", json={"prompt": "fox"}).json()["job_id"]
        client.post("/api/v1/publish", json={"job_id": job_id})

        data = self.wait_for_terminal(client, job_id)
        assert data["status"] == "done"
        assert data["url"] is None
        assert data["message"] == SOFT_FAILURE_MESSAGE

    def test_publish_failure(self, client, generator, engine):
        engine.error = ReplayTimeoutError("Navigation to https://ginkgoartworks.com/ timed out")
        job_id = client.post("/api/v1/preview", json={"prompt": "fox"}).json()["job_id"]
        client.post("/api/v1/publish", json={"job_id": job_id})

        data = self.wait_for_terminal(client, job_id)
        assert data["status"] == "failed"
        assert "timed out" in data["error"]

    def test_republish_conflict(self, client, generator):
        job_id = client.post("/api/v1/preview", json={"prompt": "fox"}).json()["job_id"]
        client.post("/api/v1/publish", json={"job_id": job_id})
        self.wait_for_terminal(client, job_id)

        response = client.post("/api/v1/publish", json={"job_id": job_id})
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error_code"] == "JOB_STATE_CONFLICT"

    def test_unknown_job(self, client):
        response = client.get("/api/v1/status/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "JOB_NOT_FOUND"

        response = client.post("/api/v1/publish", json={"job_id": "does-not-exist"})
        assert response.status_code == status.HTTP_404_NOT_FOUND
