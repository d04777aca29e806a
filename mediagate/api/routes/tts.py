"""Text-to-speech routes.

Endpoints:
    POST /api/ai/tts            Synthesize text, returns the audio bytes
    GET  /api/ai/tts/voices     Available prebuilt voices
    GET  /api/ai/tts/audios     Previously generated audio files
"""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from mediagate.api.deps import Services, get_services
from mediagate.generation.schemas import TTSRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tts", tags=["tts"])


@router.post("", response_class=Response)
async def synthesize_speech(request: TTSRequest, services: Services = Depends(get_services)):
    """Convert text to speech.

    Supports single-speaker (``voice``) and multi-speaker (``speakers``)
    modes. Raw PCM from the provider is converted to WAV before it is
    returned; the file is also kept in the audio folder.
    """
    file_path, content_type, speech = await services.tts.synthesize(request)
    audio = await asyncio.to_thread(file_path.read_bytes)

    logger.info(
        f"TTS served {file_path.name} ({len(audio):,} bytes, {content_type}, "
        f"~{speech.duration}s)"
    )
    return Response(
        content=audio,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{file_path.name}"'},
    )


@router.get("/voices")
async def list_voices(services: Services = Depends(get_services)):
    """List available TTS voices."""
    return {"success": True, "data": services.tts.available_voices()}


@router.get("/audios")
async def list_audio_files(services: Services = Depends(get_services)):
    """List generated audio files with size and modification time."""
    files = await services.tts.list_audio_files()
    return {"success": True, "data": [f.to_json_dict() for f in files]}
