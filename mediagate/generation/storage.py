"""Local persistence for generated media.

Files live in three fixed folders under the media root:

    <media_root>/audio/    TTS output (.wav, .mp3, ...)
    <media_root>/images/   Imagen output (.png)
    <media_root>/videos/   Veo output (.mp4)

Disk I/O runs in a worker thread so it never blocks the event loop.
"""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from mediagate.errors import NotFoundError, StorageError
from mediagate.generation.schemas import MediaFile

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".wav", ".mp3", ".aac", ".flac")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp")
VIDEO_EXTENSIONS = (".mp4",)


def unique_filename(prefix: str, extension: str, tag: Optional[str] = None) -> str:
    """Build ``<prefix>[_<tag>]_<epoch-ms>_<suffix><extension>``.

    The random suffix keeps concurrent workflow steps from overwriting
    each other within the same millisecond.
    """
    parts = [prefix]
    if tag:
        parts.append(tag)
    parts.append(str(int(time.time() * 1000)))
    parts.append(uuid.uuid4().hex[:6])
    return "_".join(parts) + extension


class MediaDirectory:
    """One media folder (audio, images or videos)."""

    def __init__(self, path: Path, extensions: Iterable[str]):
        self.path = path
        self.extensions = tuple(ext.lower() for ext in extensions)

    def ensure(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)

    def _write(self, filename: str, data: bytes) -> Path:
        self.ensure()
        file_path = self.path / filename
        file_path.write_bytes(data)
        return file_path

    async def save(self, filename: str, data: bytes) -> Path:
        """Write bytes to ``filename`` inside this folder and return the path."""
        try:
            file_path = await asyncio.to_thread(self._write, filename, data)
        except OSError as e:
            logger.error(f"[Storage] Failed to write {filename} to {self.path}: {e}")
            raise StorageError(f"Failed to save {filename}: {e}") from e

        logger.info(f"[Storage] Saved {file_path} ({len(data):,} bytes)")
        return file_path

    def _scan(self) -> list[MediaFile]:
        if not self.path.exists():
            logger.info(f"[Storage] Directory does not exist: {self.path}")
            return []

        files = []
        for entry in sorted(self.path.iterdir()):
            if not entry.is_file() or entry.suffix.lower() not in self.extensions:
                continue
            stats = entry.stat()
            files.append(
                MediaFile(
                    name=entry.name,
                    size=stats.st_size,
                    modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat(),
                )
            )
        return files

    async def list_files(self) -> list[MediaFile]:
        """List the media files in this folder, filtered by extension."""
        try:
            return await asyncio.to_thread(self._scan)
        except OSError as e:
            raise StorageError(f"Failed to list {self.path}: {e}") from e

    def resolve(self, filename: str) -> Path:
        """Resolve a filename for download, refusing anything outside the folder."""
        candidate = (self.path / filename).resolve()
        root = self.path.resolve()
        if candidate.parent != root or not candidate.is_file():
            raise NotFoundError(f"File not found: {filename}")
        return candidate

    def find(self, fragment: str) -> Optional[Path]:
        """Find the first media file whose name contains ``fragment``."""
        if not self.path.exists():
            return None
        for entry in sorted(self.path.iterdir()):
            if fragment in entry.name and entry.suffix.lower() in self.extensions:
                return entry
        return None


class MediaStorage:
    """The three media folders under a common root."""

    def __init__(self, media_root: Path):
        self.root = media_root
        self.audio = MediaDirectory(media_root / "audio", AUDIO_EXTENSIONS)
        self.images = MediaDirectory(media_root / "images", IMAGE_EXTENSIONS)
        self.videos = MediaDirectory(media_root / "videos", VIDEO_EXTENSIONS)

    def ensure_dirs(self) -> None:
        """Create all media folders."""
        for directory in (self.audio, self.images, self.videos):
            directory.ensure()
        logger.info(f"[Storage] Media root ready: {self.root}")
