"""Veo video generation adapter.

Video generation is asynchronous at the protocol level:

1. ``generate_video`` submits the prompt and returns an operation handle
   in ``pending`` status.
2. ``check_status`` polls the operation once: ``running`` while upstream
   is busy, ``failed`` with the provider's message, or ``completed`` with
   the URI of the generated video.
3. ``ensure_downloaded`` fetches the video once and caches it under a
   filename embedding the operation id, so repeated polls reuse the file.

``wait_for_completion`` loops step 2 until a terminal state. It has no
attempt bound: a provider operation that never finishes keeps the caller
waiting.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import httpx
from google import genai
from google.genai import types

from mediagate.errors import InvalidInputError, UpstreamError
from mediagate.generation.client import classify_provider_error, require_client
from mediagate.generation.schemas import (
    MediaFile,
    VeoRequest,
    VideoOperation,
    VideoResult,
    VideoStatus,
)
from mediagate.generation.storage import MediaDirectory, unique_filename

logger = logging.getLogger(__name__)

ASPECT_RATIOS = ["16:9", "9:16", "1:1", "4:3", "3:4", "21:9", "9:21"]
DURATION_OPTIONS = [2, 3, 4, 5, 6, 7, 8]
PERSON_GENERATION_OPTIONS = ["dont_allow", "allow_adult", "allow_all"]

MAX_DOWNLOAD_RETRIES = 3
DOWNLOAD_RETRY_DELAY = 2.0  # seconds
DOWNLOAD_TIMEOUT = httpx.Timeout(connect=30.0, read=300.0, write=30.0, pool=30.0)


def _extract_video_uri(response: Any) -> Optional[str]:
    """Find the first video URI in a completed operation's response."""
    if response is None:
        return None
    for sample in getattr(response, "generated_videos", None) or []:
        video = getattr(sample, "video", None)
        uri = getattr(video, "uri", None) if video is not None else None
        if uri:
            return uri
    return None


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return error.get("message") or "Unknown error"
    return getattr(error, "message", None) or str(error) or "Unknown error"


class VeoAdapter:
    """Prompt-to-video generation through Veo long-running operations."""

    def __init__(
        self,
        client: Optional[genai.Client],
        videos_dir: MediaDirectory,
        api_key: str = "",
        model: str = "veo-3.0-generate-preview",
        aspect_ratio: str = "16:9",
        person_generation: str = "allow_all",
        poll_interval: float = 5.0,
        proxy_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = client
        self.videos_dir = videos_dir
        self.api_key = api_key
        self.model = model
        self.aspect_ratio = aspect_ratio
        self.person_generation = person_generation
        self.poll_interval = poll_interval
        self.proxy_url = proxy_url
        self.retry_delay = DOWNLOAD_RETRY_DELAY
        self._transport = transport
        # Downloads in flight, by operation id; concurrent polls share one
        self._downloads: dict[str, asyncio.Future] = {}

    def available_aspect_ratios(self) -> list[str]:
        return list(ASPECT_RATIOS)

    def duration_options(self) -> list[int]:
        return list(DURATION_OPTIONS)

    def person_generation_options(self) -> list[str]:
        return list(PERSON_GENERATION_OPTIONS)

    async def generate_video(self, request: VeoRequest) -> VideoOperation:
        """Submit a generation job and return its pending operation handle."""
        if not request.prompt or not request.prompt.strip():
            raise InvalidInputError("Prompt cannot be empty")

        client = require_client(self._client)
        aspect_ratio = request.aspect_ratio or self.aspect_ratio
        person_generation = request.person_generation or self.person_generation
        logger.info(
            f"[Veo] Starting video generation: model={self.model}, "
            f"prompt={request.prompt[:100]!r}, aspect_ratio={aspect_ratio}, "
            f"person_generation={person_generation}, duration={request.duration_seconds}"
        )

        try:
            config = types.GenerateVideosConfig(
                aspect_ratio=aspect_ratio,
                person_generation=person_generation,
                duration_seconds=request.duration_seconds,
            )
            operation = await client.aio.models.generate_videos(
                model=self.model,
                prompt=request.prompt,
                config=config,
            )
        except Exception as e:
            raise classify_provider_error(e, "Video generation") from e

        if not getattr(operation, "name", None):
            raise UpstreamError("Video generation failed: no operation name returned")

        logger.info(f"[Veo] Operation started: {operation.name}")
        return VideoOperation(operation_name=operation.name, status=VideoStatus.PENDING)

    async def check_status(self, operation_name: str) -> VideoOperation:
        """Poll an operation once. Never downloads or writes files."""
        if not operation_name or not operation_name.strip():
            raise InvalidInputError("Operation name is required")

        client = require_client(self._client)
        try:
            operation = await client.aio.operations.get(
                types.GenerateVideosOperation(name=operation_name)
            )
        except Exception as e:
            raise classify_provider_error(e, "Check video status") from e

        if not operation.done:
            logger.info(f"[Veo] Still processing: {operation_name}")
            return VideoOperation(operation_name=operation_name, status=VideoStatus.RUNNING)

        if operation.error:
            message = _error_message(operation.error)
            logger.error(f"[Veo] Operation failed: {operation_name}: {message}")
            return VideoOperation(
                operation_name=operation_name,
                status=VideoStatus.FAILED,
                error=message,
            )

        video_uri = _extract_video_uri(operation.response)
        if not video_uri:
            logger.error(f"[Veo] Done but no video URI in response: {operation_name}")
            raise UpstreamError("Check video status failed: no video URI found in response")

        logger.info(f"[Veo] Completed: {operation_name}")
        return VideoOperation(
            operation_name=operation_name,
            status=VideoStatus.COMPLETED,
            video_uri=video_uri,
        )

    async def wait_for_completion(
        self,
        operation_name: str,
        interval: Optional[float] = None,
    ) -> VideoOperation:
        """Poll until the operation completes.

        Raises:
            UpstreamError: If the operation ends in ``failed``
        """
        interval = self.poll_interval if interval is None else interval
        checks = 0
        while True:
            checks += 1
            result = await self.check_status(operation_name)
            if result.status == VideoStatus.COMPLETED:
                logger.info(f"[Veo] {operation_name} completed after {checks} check(s)")
                return result
            if result.status == VideoStatus.FAILED:
                raise UpstreamError(result.error or "Video generation failed")
            await asyncio.sleep(interval)

    def _download_url(self, video_uri: str) -> str:
        if "key=" in video_uri or not self.api_key:
            return video_uri
        separator = "&" if "?" in video_uri else "?"
        return f"{video_uri}{separator}key={self.api_key}"

    async def _fetch_to_file(self, url: str, file_path: Path) -> int:
        async with httpx.AsyncClient(
            timeout=DOWNLOAD_TIMEOUT,
            follow_redirects=True,
            proxy=self.proxy_url if self._transport is None else None,
            transport=self._transport,
        ) as http:
            async with http.stream("GET", url) as response:
                response.raise_for_status()
                size = 0
                with open(file_path, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        size += len(chunk)
        return size

    async def download_video(self, video_uri: str, filename: str) -> Path:
        """Download a generated video into the videos folder.

        Transient failures (network errors, non-success statuses, empty
        bodies) are retried up to MAX_DOWNLOAD_RETRIES more times.
        """
        self.videos_dir.ensure()
        file_path = self.videos_dir.path / filename
        # Partial data stays under .part, which listings and the cache lookup ignore
        part_path = file_path.with_name(f"{filename}.part")
        url = self._download_url(video_uri)

        last_error = "unknown error"
        for attempt in range(MAX_DOWNLOAD_RETRIES + 1):
            retries_left = MAX_DOWNLOAD_RETRIES - attempt
            logger.info(f"[Veo] Downloading {filename} (retries left: {retries_left})")
            try:
                size = await self._fetch_to_file(url, part_path)
                if size > 0:
                    part_path.replace(file_path)
                    logger.info(f"[Veo] Video downloaded to {file_path} ({size:,} bytes)")
                    return file_path
                last_error = "Downloaded file is empty"
            except httpx.HTTPStatusError as e:
                last_error = f"HTTP {e.response.status_code}"
            except (httpx.HTTPError, OSError) as e:
                last_error = str(e) or type(e).__name__

            logger.warning(f"[Veo] Download attempt {attempt + 1} failed: {last_error}")
            part_path.unlink(missing_ok=True)
            if retries_left > 0:
                await asyncio.sleep(self.retry_delay)

        raise UpstreamError(f"Download failed after retries: {last_error}")

    def find_cached_video(self, operation: VideoOperation) -> Optional[Path]:
        """Previously downloaded video for this operation, if any."""
        return self.videos_dir.find(f"veo_{operation.operation_id}_")

    async def ensure_downloaded(self, operation: VideoOperation) -> Path:
        """Return the local file for a completed operation, downloading it once."""
        if not operation.video_uri:
            raise UpstreamError("Video generation failed: no video URI")

        operation_id = operation.operation_id
        download = self._downloads.get(operation_id)
        if download is None:
            cached = self.find_cached_video(operation)
            if cached is not None:
                logger.info(f"[Veo] Video already downloaded: {cached.name}")
                return cached

            filename = unique_filename("veo", ".mp4", tag=operation_id)
            download = asyncio.ensure_future(self.download_video(operation.video_uri, filename))
            self._downloads[operation_id] = download
            download.add_done_callback(lambda done: self._forget_download(operation_id, done))

        return await asyncio.shield(download)

    def _forget_download(self, operation_id: str, download: asyncio.Future) -> None:
        if self._downloads.get(operation_id) is download:
            del self._downloads[operation_id]

    async def execute(self, request: VeoRequest) -> VideoResult:
        operation = await self.generate_video(request)
        completed = await self.wait_for_completion(operation.operation_name)
        file_path = await self.ensure_downloaded(completed)
        return VideoResult(file_path=str(file_path), operation_name=completed.operation_name)

    async def list_video_files(self) -> list[MediaFile]:
        return await self.videos_dir.list_files()
