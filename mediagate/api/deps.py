"""Service wiring for the API.

Builds the adapters, the execution store and the workflow engine once per
application and exposes them to route handlers through ``Depends``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from mediagate.config import Settings
from mediagate.executor.execution_store import ExecutionStore
from mediagate.executor.workflow_runner import WorkflowEngine
from mediagate.generation.audio import AudioConverter
from mediagate.generation.client import build_genai_client
from mediagate.generation.imagen import ImagenAdapter
from mediagate.generation.storage import MediaStorage
from mediagate.generation.tts import TTSAdapter
from mediagate.generation.veo import VeoAdapter
from mediagate.workflows.registry import TemplateRegistry, get_template_registry
from mediagate.workflows.schemas import StepKind

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the route handlers need."""

    settings: Settings
    storage: MediaStorage
    tts: TTSAdapter
    imagen: ImagenAdapter
    veo: VeoAdapter
    store: ExecutionStore
    engine: WorkflowEngine
    templates: TemplateRegistry


def build_services(settings: Settings, client=None) -> Services:
    """Create the service graph for one application instance.

    Args:
        settings: Runtime settings
        client: Optional pre-built Gemini client (tests pass a mock)
    """
    if client is None:
        client = build_genai_client(settings)

    storage = MediaStorage(settings.media_root)
    tts = TTSAdapter(
        client,
        storage.audio,
        AudioConverter(settings.ffmpeg_path),
        model=settings.tts_model,
    )
    imagen = ImagenAdapter(client, storage.images, model=settings.imagen_model)
    veo = VeoAdapter(
        client,
        storage.videos,
        api_key=settings.gemini_api_key,
        model=settings.veo_model,
        poll_interval=settings.veo_poll_interval,
        proxy_url=settings.proxy_url,
    )

    store = ExecutionStore()
    engine = WorkflowEngine(
        store,
        {StepKind.TTS: tts, StepKind.IMAGE: imagen, StepKind.VIDEO: veo},
    )

    return Services(
        settings=settings,
        storage=storage,
        tts=tts,
        imagen=imagen,
        veo=veo,
        store=store,
        engine=engine,
        templates=get_template_registry(),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the application's services."""
    services: Optional[Services] = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialised on application state")
    return services
