"""Media Gateway API.

Thin gateway in front of Google's generative media models:
- Text-to-speech (single and multi-speaker)
- Image generation
- Long-running video generation with polling and download
- Multi-step media workflows executed in the background
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from mediagate import __version__
from mediagate.api.deps import Services, build_services
from mediagate.api.errors import register_error_handlers
from mediagate.api.routes import imagen, tts, veo, workflow
from mediagate.config import Settings, get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Runtime settings (defaults to the environment)
        services: Pre-built service graph (tests inject mocked adapters)
    """
    if settings is None:
        settings = services.settings if services is not None else get_settings()
    if services is None:
        services = build_services(settings)

    logging.getLogger().setLevel(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        services.storage.ensure_dirs()
        logger.info(f"Loaded {services.templates.count()} workflow templates")
        logger.info(f"Media root: {settings.media_root}")
        logger.info("Media Gateway API ready")
        yield
        # Shutdown: running executions are cancelled and marked failed
        logger.info("Shutting down Media Gateway API")
        await services.engine.shutdown()

    app = FastAPI(
        title="Media Gateway API",
        description="""
## Generative Media Gateway

Backend for a media studio front-end. Proxies text-to-speech, image and
video generation to Google's Gemini API, stores the produced files locally
and runs multi-step media workflows in the background.

### Key Endpoints

- `POST /api/ai/tts` - Synthesize speech, returns audio bytes
- `POST /api/ai/imagen` - Generate an image
- `POST /api/ai/veo` - Start a video job, then poll `GET /api/ai/veo/status/{operationName}`
- `POST /api/ai/workflow` - Run a workflow, then poll `GET /api/ai/workflow/{executionId}`
""",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(tts.router, prefix="/api/ai")
    app.include_router(imagen.router, prefix="/api/ai")
    app.include_router(veo.router, prefix="/api/ai")
    app.include_router(workflow.router, prefix="/api/ai")

    @app.get("/api")
    async def root():
        """API index."""
        return {
            "service": "Media Gateway API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "tts": "/api/ai/tts",
                "voices": "/api/ai/tts/voices",
                "imagen": "/api/ai/imagen",
                "imagenOptions": "/api/ai/imagen/options",
                "veo": "/api/ai/veo",
                "veoStatus": "/api/ai/veo/status/{operationName}",
                "veoOptions": "/api/ai/veo/options",
                "workflow": "/api/ai/workflow",
                "workflowTemplates": "/api/ai/workflow/templates",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "executions": services.store.count(),
            "activeExecutions": len(services.store.active_tasks()),
            "geminiConfigured": bool(settings.gemini_api_key),
        }

    # Generated media served directly for previews
    app.mount("/audio", StaticFiles(directory=settings.audio_dir, check_dir=False), name="audio")
    app.mount("/images", StaticFiles(directory=settings.images_dir, check_dir=False), name="images")
    app.mount("/videos", StaticFiles(directory=settings.videos_dir, check_dir=False), name="videos")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("mediagate.api.main:app", host="0.0.0.0", port=get_settings().port)
