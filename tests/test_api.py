"""API tests: routes, envelopes and the workflow lifecycle over HTTP."""

from dataclasses import replace
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
from google.genai import errors as genai_errors

from conftest import PCM_BYTES, VIDEO_BYTES, video_operation
from mediagate.api.deps import build_services
from mediagate.api.main import create_app

OPERATION = "models/veo/operations/op123"


# --- Service endpoints ---


@pytest.mark.asyncio
async def test_health(api_client):
    response = await api_client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["executions"] == 0
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_index(api_client):
    response = await api_client.get("/api")
    assert response.status_code == 200
    assert response.json()["endpoints"]["workflow"] == "/api/ai/workflow"


@pytest.mark.asyncio
async def test_unknown_route(api_client):
    response = await api_client.get("/api/ai/nothing-here")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Route not found",
        "code": "NOT_FOUND",
        "path": "/api/ai/nothing-here",
        "method": "GET",
    }


# --- TTS ---


@pytest.mark.asyncio
async def test_tts_returns_wav(api_client, services):
    response = await api_client.post("/api/ai/tts", json={"text": "Hello world", "voice": "Kore"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.headers["content-disposition"].startswith('attachment; filename="tts_')
    assert response.content[:4] == b"RIFF"
    assert response.content.endswith(PCM_BYTES)
    assert len(await services.tts.list_audio_files()) == 1


@pytest.mark.asyncio
async def test_tts_missing_text(api_client):
    response = await api_client.post("/api/ai/tts", json={"voice": "Kore"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "INVALID_REQUEST"
    assert "text" in body["error"]


@pytest.mark.asyncio
async def test_tts_blank_text(api_client, genai_client):
    response = await api_client.post("/api/ai/tts", json={"text": ""})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Text is required", "code": "INVALID_REQUEST"}
    genai_client.aio.models.generate_content.assert_not_called()


@pytest.mark.asyncio
async def test_tts_rate_limited(api_client, genai_client):
    genai_client.aio.models.generate_content = AsyncMock(
        side_effect=genai_errors.ClientError(
            429,
            {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
        )
    )
    response = await api_client.post("/api/ai/tts", json={"text": "Hi"})

    assert response.status_code == 429
    body = response.json()
    assert body["code"] == "RATE_LIMITED"
    assert body["success"] is False


@pytest.mark.asyncio
async def test_voices(api_client):
    response = await api_client.get("/api/ai/tts/voices")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "Kore" in body["data"]


@pytest.mark.asyncio
async def test_missing_api_key_is_auth_error(settings):
    services = build_services(replace(settings, gemini_api_key=""))
    app = create_app(services=services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.post("/api/ai/tts", json={"text": "Hi"})
        options = await client.get("/api/ai/imagen/options")

    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_ERROR"
    # Endpoints that never call the provider keep working
    assert options.status_code == 200


# --- Imagen ---


@pytest.mark.asyncio
async def test_imagen(api_client):
    response = await api_client.post("/api/ai/imagen", json={"prompt": "A cat", "aspectRatio": "1:1"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["prompt"] == "A cat"
    assert data["imageCount"] == 1
    assert Path(data["filePath"]).is_file()

    listing = await api_client.get("/api/ai/imagen/images")
    assert [f["name"] for f in listing.json()["data"]] == [Path(data["filePath"]).name]


@pytest.mark.asyncio
async def test_imagen_sample_count_out_of_range(api_client):
    response = await api_client.post("/api/ai/imagen", json={"prompt": "A cat", "sampleCount": 9})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_imagen_options(api_client):
    data = (await api_client.get("/api/ai/imagen/options")).json()["data"]
    assert "1:1" in data["aspectRatios"]
    assert data["personGenerationOptions"] == ["dont_allow", "allow_adult", "allow_all"]


# --- Veo ---


@pytest.mark.asyncio
async def test_veo_start(api_client):
    response = await api_client.post("/api/ai/veo", json={"prompt": "Waves", "durationSeconds": 5})
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {"operationName": OPERATION, "status": "pending"},
    }


@pytest.mark.asyncio
async def test_veo_status_running(api_client, genai_client, services):
    genai_client.aio.operations.get = AsyncMock(return_value=video_operation(OPERATION, done=False))

    response = await api_client.get(f"/api/ai/veo/status/{OPERATION}")

    data = response.json()["data"]
    assert data == {"operationName": OPERATION, "status": "running"}
    assert await services.veo.list_video_files() == []


@pytest.mark.asyncio
async def test_veo_status_completed_downloads_once(api_client, services):
    first = (await api_client.get(f"/api/ai/veo/status/{OPERATION}")).json()["data"]
    second = (await api_client.get(f"/api/ai/veo/status/{OPERATION}")).json()["data"]

    assert first["status"] == "completed"
    assert first["videoUrl"].startswith("/videos/veo_op123_")
    assert second["videoUrl"] == first["videoUrl"]
    assert len(await services.veo.list_video_files()) == 1

    served = await api_client.get(first["videoUrl"])
    assert served.status_code == 200
    assert served.content == VIDEO_BYTES

    name = first["videoUrl"].rsplit("/", 1)[-1]
    download = await api_client.get(f"/api/ai/veo/videos/{name}")
    assert download.status_code == 200
    assert download.headers["content-type"] == "video/mp4"


@pytest.mark.asyncio
async def test_veo_status_failed(api_client, genai_client):
    genai_client.aio.operations.get = AsyncMock(
        return_value=video_operation(OPERATION, done=True, error={"message": "Prompt blocked"})
    )
    data = (await api_client.get(f"/api/ai/veo/status/{OPERATION}")).json()["data"]
    assert data == {"operationName": OPERATION, "status": "failed", "error": "Prompt blocked"}


@pytest.mark.asyncio
async def test_veo_unknown_video(api_client):
    response = await api_client.get("/api/ai/veo/videos/missing.mp4")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_veo_options(api_client):
    data = (await api_client.get("/api/ai/veo/options")).json()["data"]
    assert data["durationOptions"] == [2, 3, 4, 5, 6, 7, 8]
    assert "16:9" in data["aspectRatios"]


# --- Workflows ---


@pytest.mark.asyncio
async def test_workflow_end_to_end(api_client, services):
    workflow = {
        "id": "w1",
        "name": "Narration",
        "steps": [{"id": "s1", "type": "tts", "config": {"text": "Hello"}, "outputKey": "audio"}],
    }
    response = await api_client.post("/api/ai/workflow", json=workflow)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["message"] == "Workflow execution started"
    execution_id = data["executionId"]
    assert execution_id.startswith("exec_")

    await services.engine.wait(execution_id)

    execution = (await api_client.get(f"/api/ai/workflow/{execution_id}")).json()["data"]
    assert execution["status"] == "completed"
    assert execution["configId"] == "w1"
    assert execution["results"]["audio"]["type"] == "audio"
    assert execution["results"]["s1"] == execution["results"]["audio"]
    assert Path(execution["results"]["audio"]["filePath"]).is_file()
    assert "endTime" in execution


@pytest.mark.asyncio
async def test_workflow_dependency_failure(api_client, services):
    workflow = {
        "id": "w2",
        "name": "Out of order",
        "steps": [
            {"id": "narrate", "type": "tts", "config": {"text": "Hi"}, "dependsOn": ["img"]},
            {"id": "img", "type": "image", "config": {"prompt": "A cat"}},
        ],
    }
    execution_id = (await api_client.post("/api/ai/workflow", json=workflow)).json()["data"]["executionId"]
    await services.engine.wait(execution_id)

    execution = (await api_client.get(f"/api/ai/workflow/{execution_id}")).json()["data"]
    assert execution["status"] == "failed"
    assert execution["error"] == "Dependency img not executed for step narrate"
    assert execution["errorCode"] == "DEPENDENCY_ERROR"


@pytest.mark.asyncio
async def test_workflow_without_steps(api_client, services):
    response = await api_client.post("/api/ai/workflow", json={"id": "w", "name": "Empty", "steps": []})

    assert response.status_code == 400
    assert response.json()["error"] == "Workflow must have at least one step"
    assert services.store.count() == 0


@pytest.mark.asyncio
async def test_workflow_unknown_step_type(api_client):
    workflow = {"id": "w", "name": "Bad", "steps": [{"id": "s", "type": "music", "config": {"prompt": "x"}}]}
    response = await api_client.post("/api/ai/workflow", json=workflow)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_workflow_unknown_execution(api_client):
    response = await api_client.get("/api/ai/workflow/exec_0_missing")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Execution not found", "code": "NOT_FOUND"}


@pytest.mark.asyncio
async def test_workflow_list(api_client, services):
    workflow = {"id": "w", "name": "One", "steps": [{"id": "s", "type": "image", "config": {"prompt": "x"}}]}
    execution_id = (await api_client.post("/api/ai/workflow", json=workflow)).json()["data"]["executionId"]
    await services.engine.wait(execution_id)

    data = (await api_client.get("/api/ai/workflow")).json()["data"]
    assert [e["id"] for e in data] == [execution_id]


@pytest.mark.asyncio
async def test_workflow_templates(api_client):
    data = (await api_client.get("/api/ai/workflow/templates")).json()["data"]
    ids = [t["id"] for t in data]
    assert "complex_workflow" in ids
    complex_workflow = next(t for t in data if t["id"] == "complex_workflow")
    assert complex_workflow["steps"][1]["dependsOn"] == ["generate_image"]
    assert complex_workflow["steps"][0]["type"] == "image"
