"""Test configuration and fixtures."""

import asyncio
import base64
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from mediagate.api.deps import build_services
from mediagate.api.main import create_app
from mediagate.config import Settings
from mediagate.executor.execution_store import ExecutionStore
from mediagate.executor.workflow_runner import WorkflowEngine
from mediagate.generation.schemas import AudioResult, ImageResult, VideoResult
from mediagate.workflows.schemas import StepKind

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PCM_BYTES = b"\x01\x00\x02\x00" * 240
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


# --- Gemini SDK response builders ---


def tts_response(data: bytes = PCM_BYTES, mime_type: Optional[str] = "audio/L16;codec=pcm;rate=24000"):
    inline = SimpleNamespace(data=data, mime_type=mime_type)
    part = SimpleNamespace(inline_data=inline)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def images_response(*payloads: bytes):
    return SimpleNamespace(
        generated_images=[
            SimpleNamespace(image=SimpleNamespace(image_bytes=p, mime_type="image/png"))
            for p in payloads
        ]
    )


def video_operation(name: str, done: bool = False, uri: Optional[str] = None, error=None):
    response = None
    if uri:
        response = SimpleNamespace(generated_videos=[SimpleNamespace(video=SimpleNamespace(uri=uri))])
    return SimpleNamespace(name=name, done=done, error=error, response=response)


# --- Fake adapters for engine tests ---


class FakeAdapter:
    """Adapter double recording calls, with optional delay and failure."""

    def __init__(self, kind: StepKind, delay: float = 0.0, error: Optional[Exception] = None):
        self.kind = kind
        self.delay = delay
        self.error = error
        self.calls = []
        self.cancelled = 0

    async def execute(self, request):
        self.calls.append(request)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.error is not None:
            raise self.error
        n = len(self.calls)
        if self.kind == StepKind.TTS:
            return AudioResult(file_path=f"/media/audio/tts_{n}.wav", duration=1)
        if self.kind == StepKind.IMAGE:
            return ImageResult(file_path=f"/media/images/imagen_{n}.png", prompt=request.prompt)
        return VideoResult(file_path=f"/media/videos/veo_{n}.mp4", operation_name=f"operations/op{n}")


@pytest.fixture
def fake_adapters():
    return {kind: FakeAdapter(kind) for kind in StepKind}


@pytest.fixture
def store():
    return ExecutionStore()


@pytest.fixture
def engine(store, fake_adapters):
    return WorkflowEngine(store, fake_adapters)


# --- Real adapters over a mocked Gemini client ---


@pytest.fixture
def settings(tmp_path):
    return Settings(
        gemini_api_key="test-key",
        media_root=tmp_path,
        ffmpeg_path="/nonexistent/ffmpeg",
        veo_poll_interval=0.0,
    )


@pytest.fixture
def genai_client():
    """MagicMock standing in for google.genai.Client (only ``.aio`` is used)."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=tts_response())
    client.aio.models.generate_images = AsyncMock(return_value=images_response(PNG_BYTES))
    client.aio.models.generate_videos = AsyncMock(
        return_value=video_operation("models/veo/operations/op123")
    )
    client.aio.operations.get = AsyncMock(
        return_value=video_operation(
            "models/veo/operations/op123",
            done=True,
            uri="https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media",
        )
    )
    return client


def video_transport(payload: bytes = VIDEO_BYTES, requests: Optional[list] = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(200, content=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def services(settings, genai_client):
    services = build_services(settings, client=genai_client)
    services.veo._transport = video_transport()
    services.veo.retry_delay = 0
    services.storage.ensure_dirs()
    return services


@pytest_asyncio.fixture
async def api_client(services):
    app = create_app(services=services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await services.engine.shutdown()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
