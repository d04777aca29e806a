"""Raw PCM to WAV conversion.

Gemini TTS returns 16-bit little-endian mono PCM with a mime type such as
``audio/L16;codec=pcm;rate=24000``. Clients expect a playable container,
so the samples are wrapped into WAV with ffmpeg. When ffmpeg is missing or
fails, the samples are written into a WAV container directly so the file
is still playable.
"""

import asyncio
import logging
import re
import shutil
import time
import wave
from pathlib import Path
from typing import Optional

from mediagate.errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 24000
SAMPLE_WIDTH_BYTES = 2  # s16le
CHANNELS = 1

_RATE_RE = re.compile(r"rate=(\d+)")


def is_raw_pcm(content_type: Optional[str]) -> bool:
    """True when the provider returned bare samples rather than a container."""
    if not content_type:
        return True
    return "L16" in content_type or content_type.split(";")[0].strip() == "audio/pcm"


def parse_sample_rate(content_type: Optional[str]) -> int:
    """Extract ``rate=<n>`` from a PCM mime type (24 kHz when absent)."""
    match = _RATE_RE.search(content_type or "")
    return int(match.group(1)) if match else DEFAULT_SAMPLE_RATE


def _write_wav_container(pcm_data: bytes, output_path: Path, sample_rate: int) -> None:
    with wave.open(str(output_path), "wb") as wav_file:
        wav_file.setnchannels(CHANNELS)
        wav_file.setsampwidth(SAMPLE_WIDTH_BYTES)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(pcm_data)


class AudioConverter:
    """Converts PCM payloads to WAV files using ffmpeg."""

    def __init__(self, ffmpeg_path: Optional[str] = None):
        self._configured_path = ffmpeg_path

    def resolve_ffmpeg(self) -> Optional[str]:
        """Configured ffmpeg binary, else whatever is on PATH."""
        if self._configured_path:
            return self._configured_path
        found = shutil.which("ffmpeg")
        if found is None:
            logger.warning(
                "ffmpeg not found on PATH; set FFMPEG_PATH to enable encoder-based conversion"
            )
        return found

    async def _run_ffmpeg(self, ffmpeg: str, pcm_path: Path, output_path: Path, sample_rate: int) -> bool:
        cmd = [
            ffmpeg, "-y",
            "-f", "s16le",
            "-ar", str(sample_rate),
            "-ac", str(CHANNELS),
            "-i", str(pcm_path),
            str(output_path),
        ]
        logger.info(f"[AudioConverter] Running: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.warning(f"[AudioConverter] Could not start ffmpeg ({ffmpeg}): {e}")
            return False

        _, stderr = await process.communicate()
        if process.returncode != 0:
            tail = stderr.decode(errors="replace")[-500:]
            logger.warning(f"[AudioConverter] ffmpeg exited with {process.returncode}: {tail}")
            return False
        return output_path.exists()

    async def pcm_to_wav(self, pcm_data: bytes, output_path: Path, content_type: Optional[str]) -> Path:
        """Convert PCM samples to a WAV file at ``output_path``.

        Returns:
            The output path

        Raises:
            StorageError: If neither ffmpeg nor the direct WAV write succeeded
        """
        sample_rate = parse_sample_rate(content_type)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        ffmpeg = self.resolve_ffmpeg()
        if ffmpeg:
            pcm_path = output_path.parent / f"temp_{int(time.time() * 1000)}_{output_path.stem}.pcm"
            try:
                await asyncio.to_thread(pcm_path.write_bytes, pcm_data)
                if await self._run_ffmpeg(ffmpeg, pcm_path, output_path, sample_rate):
                    logger.info(
                        f"[AudioConverter] WAV created via ffmpeg: {output_path} "
                        f"({output_path.stat().st_size:,} bytes)"
                    )
                    return output_path
            except OSError as e:
                logger.warning(f"[AudioConverter] ffmpeg conversion failed: {e}")
            finally:
                pcm_path.unlink(missing_ok=True)

        logger.info(f"[AudioConverter] Writing WAV container directly ({sample_rate} Hz)")
        try:
            await asyncio.to_thread(_write_wav_container, pcm_data, output_path, sample_rate)
        except (OSError, wave.Error) as e:
            raise StorageError(f"Failed to write WAV file {output_path}: {e}") from e
        return output_path
