"""Generation adapters for Gemini TTS, Imagen and Veo.

Each adapter wraps one provider capability behind ``execute(request)``,
which generates, stores the media locally and returns a tagged result.
"""

from mediagate.generation.audio import AudioConverter
from mediagate.generation.base import GenerationAdapter
from mediagate.generation.client import build_genai_client, classify_provider_error
from mediagate.generation.imagen import ImagenAdapter
from mediagate.generation.storage import MediaDirectory, MediaStorage
from mediagate.generation.tts import TTSAdapter
from mediagate.generation.veo import VeoAdapter

__all__ = [
    "AudioConverter",
    "GenerationAdapter",
    "build_genai_client",
    "classify_provider_error",
    "ImagenAdapter",
    "MediaDirectory",
    "MediaStorage",
    "TTSAdapter",
    "VeoAdapter",
]
