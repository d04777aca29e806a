"""Service configuration read from environment variables.

All settings have working defaults except GEMINI_API_KEY, which is only
required once a provider call is actually made (listing files, options and
templates work without it).

Environment variables:
    GEMINI_API_KEY: Google AI Studio key sent with every provider call
    GEMINI_BASE_URL: Override for the Generative Language API base URL
    PROXY_URL: HTTP(S) proxy for outbound provider traffic
    FFMPEG_PATH: Explicit ffmpeg binary (otherwise looked up on PATH)
    MEDIA_ROOT: Directory holding the audio/, images/ and videos/ folders
    TTS_MODEL / IMAGEN_MODEL / VEO_MODEL: Default model per capability
    REQUEST_TIMEOUT: Provider call timeout in seconds
    VEO_POLL_INTERVAL: Seconds between Veo status checks in workflows
    CORS_ORIGINS: Comma-separated list of allowed origins
    LOG_LEVEL: Root log level (INFO by default)
    PORT: Port used when running the API module directly
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://localhost:3000")


def _split_csv(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return DEFAULT_CORS_ORIGINS
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the gateway."""

    gemini_api_key: str = ""
    gemini_base_url: str = DEFAULT_BASE_URL
    proxy_url: Optional[str] = None
    ffmpeg_path: Optional[str] = None
    media_root: Path = field(default_factory=Path.cwd)
    tts_model: str = "gemini-2.5-flash-preview-tts"
    imagen_model: str = "imagen-3.0-generate-002"
    veo_model: str = "veo-3.0-generate-preview"
    request_timeout: float = 60.0
    veo_poll_interval: float = 5.0
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"
    port: int = 3000

    @property
    def audio_dir(self) -> Path:
        return self.media_root / "audio"

    @property
    def images_dir(self) -> Path:
        return self.media_root / "images"

    @property
    def videos_dir(self) -> Path:
        return self.media_root / "videos"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        env = os.environ
        return cls(
            gemini_api_key=env.get("GEMINI_API_KEY", ""),
            gemini_base_url=env.get("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            proxy_url=env.get("PROXY_URL") or None,
            ffmpeg_path=env.get("FFMPEG_PATH") or None,
            media_root=Path(env.get("MEDIA_ROOT", os.getcwd())),
            tts_model=env.get("TTS_MODEL", cls.tts_model),
            imagen_model=env.get("IMAGEN_MODEL", cls.imagen_model),
            veo_model=env.get("VEO_MODEL", cls.veo_model),
            request_timeout=float(env.get("REQUEST_TIMEOUT", cls.request_timeout)),
            veo_poll_interval=float(env.get("VEO_POLL_INTERVAL", cls.veo_poll_interval)),
            cors_origins=_split_csv(env.get("CORS_ORIGINS")),
            log_level=env.get("LOG_LEVEL", cls.log_level).upper(),
            port=int(env.get("PORT", cls.port)),
        )


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        if not _settings.gemini_api_key:
            logger.warning(
                "GEMINI_API_KEY not set, generation endpoints will fail until it is configured"
            )
    return _settings
