"""Request, response and result schemas for the generation adapters.

JSON payloads use camelCase (``sampleCount``, ``filePath``...) while the
Python side uses snake_case; every model accepts both on input.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Requests ---


class SpeakerConfig(CamelModel):
    """One named speaker in a multi-speaker TTS request."""

    name: str
    voice: str


class TTSRequest(CamelModel):
    """Text-to-speech request."""

    text: str = Field(..., description="Text to synthesize")
    voice: Optional[str] = Field(default=None, description="Prebuilt voice name (single-speaker mode)")
    model: Optional[str] = Field(default=None, description="Override the default TTS model")
    speakers: Optional[list[SpeakerConfig]] = Field(
        default=None,
        description="Speaker-to-voice mapping; enables multi-speaker mode when non-empty",
    )


class ImagenRequest(CamelModel):
    """Image generation request."""

    prompt: str
    sample_count: Optional[int] = Field(default=None, ge=1, le=4)
    aspect_ratio: Optional[str] = None
    person_generation: Optional[str] = None
    negative_prompt: Optional[str] = None
    seed: Optional[int] = None


class VeoRequest(CamelModel):
    """Video generation request."""

    prompt: str
    aspect_ratio: Optional[str] = None
    person_generation: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=1)


# --- Provider responses ---


@dataclass
class SpeechAudio:
    """Raw audio returned by the TTS provider."""

    audio_data: bytes
    content_type: str
    duration: Optional[int] = None


@dataclass
class GeneratedImage:
    """One image returned by Imagen."""

    bytes_base64_encoded: str
    mime_type: str = "image/png"


@dataclass
class ImagenResponse:
    """Images returned for a single prompt."""

    images: list[GeneratedImage]
    prompt: str


class VideoStatus(str, Enum):
    """Lifecycle of an upstream Veo operation."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoOperation(CamelModel):
    """Handle for a long-running Veo operation."""

    operation_name: str
    status: VideoStatus = VideoStatus.PENDING
    video_uri: Optional[str] = None
    error: Optional[str] = None

    @property
    def operation_id(self) -> str:
        """Trailing segment of the operation name (``.../operations/<id>``)."""
        return self.operation_name.rstrip("/").split("/")[-1]


class MediaFile(CamelModel):
    """A generated file on disk."""

    name: str
    size: int
    modified: str


# --- Results ---


class AudioResult(CamelModel):
    """Result of a TTS step."""

    type: Literal["audio"] = "audio"
    file_path: str
    duration: Optional[int] = None


class ImageResult(CamelModel):
    """Result of an image step."""

    type: Literal["image"] = "image"
    file_path: str
    prompt: str


class VideoResult(CamelModel):
    """Result of a video step."""

    type: Literal["video"] = "video"
    file_path: str
    operation_name: str


GenerationResult = Annotated[
    Union[AudioResult, ImageResult, VideoResult],
    Field(discriminator="type"),
]
