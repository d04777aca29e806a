"""Gemini text-to-speech adapter.

Handles:
- Single-speaker (prebuilt voice) and multi-speaker speech configs
- Duration estimation from the input text
- Canonical output: raw L16/PCM is converted to WAV, other containers
  are saved as-is
"""

import logging
import math
import re
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import types

from mediagate.errors import InvalidInputError, UpstreamError
from mediagate.generation.audio import AudioConverter, is_raw_pcm
from mediagate.generation.client import classify_provider_error, require_client
from mediagate.generation.schemas import AudioResult, MediaFile, SpeechAudio, TTSRequest
from mediagate.generation.storage import MediaDirectory, unique_filename

logger = logging.getLogger(__name__)

AVAILABLE_VOICES = [
    "Kore",
    "Puck",
    "Charon",
    "Fenrir",
    "Aoede",
    "Juno",
    "Leda",
    "Seda",
    "Rei",
    "Ayla",
]

# Container mime types the provider may return instead of raw PCM
_CONTAINER_EXTENSIONS = {
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/aac": ".aac",
    "audio/flac": ".flac",
}

_LATIN_OR_SPACE_RE = re.compile(r"[a-zA-Z0-9\s]")


def estimate_duration(text: str) -> int:
    """Rough spoken duration in seconds.

    Assumes ~3 English words per second and ~2 CJK characters per second.
    """
    words = len(text.split())
    other_chars = len(_LATIN_OR_SPACE_RE.sub("", text))
    return math.ceil(words / 3 + other_chars / 2)


class TTSAdapter:
    """Speech synthesis through Gemini's TTS models."""

    def __init__(
        self,
        client: Optional[genai.Client],
        audio_dir: MediaDirectory,
        converter: AudioConverter,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: str = "Kore",
    ):
        self._client = client
        self.audio_dir = audio_dir
        self.converter = converter
        self.model = model
        self.voice = voice

    def available_voices(self) -> list[str]:
        return list(AVAILABLE_VOICES)

    def build_config(self, request: TTSRequest) -> types.GenerateContentConfig:
        """Build the generation config with the speech settings for ``request``."""
        if request.speakers:
            speech_config = types.SpeechConfig(
                multi_speaker_voice_config=types.MultiSpeakerVoiceConfig(
                    speaker_voice_configs=[
                        types.SpeakerVoiceConfig(
                            speaker=speaker.name,
                            voice_config=types.VoiceConfig(
                                prebuilt_voice_config=types.PrebuiltVoiceConfig(
                                    voice_name=speaker.voice,
                                ),
                            ),
                        )
                        for speaker in request.speakers
                    ],
                ),
            )
        else:
            speech_config = types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=request.voice or self.voice,
                    ),
                ),
            )

        return types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=speech_config,
        )

    async def generate_speech(self, request: TTSRequest) -> SpeechAudio:
        """Call the TTS model and return the raw audio payload."""
        if not request.text or not request.text.strip():
            raise InvalidInputError("Text is required")

        client = require_client(self._client)
        model = request.model or self.model
        logger.info(
            f"[TTS] Request: model={model}, voice={request.voice or self.voice}, "
            f"speakers={len(request.speakers or [])}, chars={len(request.text)}"
        )

        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=request.text,
                config=self.build_config(request),
            )
        except Exception as e:
            raise classify_provider_error(e, "TTS generation") from e

        try:
            inline_data = response.candidates[0].content.parts[0].inline_data
        except (AttributeError, IndexError, TypeError):
            inline_data = None
        if inline_data is None or not inline_data.data:
            raise UpstreamError("TTS generation failed: invalid response structure from TTS API")

        content_type = inline_data.mime_type or "audio/pcm"
        logger.info(f"[TTS] Received {len(inline_data.data):,} bytes ({content_type})")

        return SpeechAudio(
            audio_data=inline_data.data,
            content_type=content_type,
            duration=estimate_duration(request.text),
        )

    async def synthesize(self, request: TTSRequest) -> tuple[Path, str, SpeechAudio]:
        """Generate speech and store it in its canonical container.

        Returns:
            Tuple of (file_path, served_content_type, raw_speech)
        """
        speech = await self.generate_speech(request)

        if is_raw_pcm(speech.content_type):
            logger.info("[TTS] L16/PCM payload detected, converting to WAV")
            output_path = self.audio_dir.path / unique_filename("tts", ".wav")
            file_path = await self.converter.pcm_to_wav(
                speech.audio_data, output_path, speech.content_type
            )
            return file_path, "audio/wav", speech

        mime = speech.content_type.split(";")[0].strip().lower()
        extension = _CONTAINER_EXTENSIONS.get(mime, ".mp3")
        file_path = await self.audio_dir.save(unique_filename("tts", extension), speech.audio_data)
        return file_path, mime or "audio/mpeg", speech

    async def execute(self, request: TTSRequest) -> AudioResult:
        file_path, _, speech = await self.synthesize(request)
        return AudioResult(file_path=str(file_path), duration=speech.duration)

    async def list_audio_files(self) -> list[MediaFile]:
        return await self.audio_dir.list_files()
