"""Imagen image generation adapter."""

import base64
import binascii
import logging
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import types

from mediagate.errors import InvalidInputError, UpstreamError
from mediagate.generation.client import classify_provider_error, require_client
from mediagate.generation.schemas import (
    GeneratedImage,
    ImagenRequest,
    ImagenResponse,
    ImageResult,
    MediaFile,
)
from mediagate.generation.storage import MediaDirectory, unique_filename

logger = logging.getLogger(__name__)

ASPECT_RATIOS = ["1:1", "9:16", "16:9", "4:3", "3:4", "3:2", "2:3"]
PERSON_GENERATION_OPTIONS = ["dont_allow", "allow_adult", "allow_all"]


class ImagenAdapter:
    """Prompt-to-image generation through Imagen."""

    def __init__(
        self,
        client: Optional[genai.Client],
        images_dir: MediaDirectory,
        model: str = "imagen-3.0-generate-002",
        sample_count: int = 1,
    ):
        self._client = client
        self.images_dir = images_dir
        self.model = model
        self.sample_count = sample_count

    def available_aspect_ratios(self) -> list[str]:
        return list(ASPECT_RATIOS)

    def person_generation_options(self) -> list[str]:
        return list(PERSON_GENERATION_OPTIONS)

    async def generate_image(self, request: ImagenRequest) -> ImagenResponse:
        """Generate images for a prompt.

        Raises:
            InvalidInputError: If the prompt is empty
            UpstreamError: If the provider fails or returns no images
        """
        if not request.prompt or not request.prompt.strip():
            raise InvalidInputError("Prompt is required")

        client = require_client(self._client)
        sample_count = request.sample_count or self.sample_count
        logger.info(
            f"[Imagen] Request: model={self.model}, prompt={request.prompt[:100]!r}, "
            f"aspect_ratio={request.aspect_ratio}, samples={sample_count}, "
            f"person_generation={request.person_generation}"
        )

        try:
            config = types.GenerateImagesConfig(
                number_of_images=sample_count,
                aspect_ratio=request.aspect_ratio,
                person_generation=(
                    request.person_generation.upper() if request.person_generation else None
                ),
                negative_prompt=request.negative_prompt,
                seed=request.seed,
            )
            response = await client.aio.models.generate_images(
                model=self.model,
                prompt=request.prompt,
                config=config,
            )
        except Exception as e:
            raise classify_provider_error(e, "Image generation") from e

        images = []
        for generated in response.generated_images or []:
            image = getattr(generated, "image", None)
            if image is None or not image.image_bytes:
                continue
            images.append(
                GeneratedImage(
                    bytes_base64_encoded=base64.b64encode(image.image_bytes).decode("ascii"),
                    mime_type=image.mime_type or "image/png",
                )
            )

        if not images:
            logger.warning(f"[Imagen] No images in response for prompt {request.prompt[:50]!r}")
            raise UpstreamError("Image generation failed: no images generated")

        logger.info(f"[Imagen] Generated {len(images)} image(s)")
        return ImagenResponse(images=images, prompt=request.prompt)

    async def save_image(self, image_data: str, filename: str) -> Path:
        """Decode a base64 image and write it to the images folder."""
        try:
            raw = base64.b64decode(image_data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise UpstreamError(f"Image payload is not valid base64: {e}") from e
        return await self.images_dir.save(filename, raw)

    async def execute(self, request: ImagenRequest) -> ImageResult:
        response = await self.generate_image(request)
        file_path = await self.save_image(
            response.images[0].bytes_base64_encoded,
            unique_filename("imagen", ".png"),
        )
        return ImageResult(file_path=str(file_path), prompt=response.prompt)

    async def list_image_files(self) -> list[MediaFile]:
        return await self.images_dir.list_files()
