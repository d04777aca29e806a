"""Image generation routes.

Endpoints:
    POST /api/ai/imagen             Generate an image, returns the saved path
    GET  /api/ai/imagen/options     Supported aspect ratios / person policies
    GET  /api/ai/imagen/images      Previously generated image files
"""

import logging
import time

from fastapi import APIRouter, Depends

from mediagate.api.deps import Services, get_services
from mediagate.generation.schemas import ImagenRequest
from mediagate.generation.storage import unique_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imagen", tags=["imagen"])


@router.post("")
async def generate_image(request: ImagenRequest, services: Services = Depends(get_services)):
    """Generate an image from a prompt and save the first result."""
    start = time.time()
    response = await services.imagen.generate_image(request)
    file_path = await services.imagen.save_image(
        response.images[0].bytes_base64_encoded,
        unique_filename("imagen", ".png"),
    )

    logger.info(f"Image saved to {file_path} in {int((time.time() - start) * 1000)}ms")
    return {
        "success": True,
        "data": {
            "filePath": str(file_path),
            "prompt": response.prompt,
            "imageCount": len(response.images),
        },
    }


@router.get("/options")
async def get_options(services: Services = Depends(get_services)):
    """Get the Imagen configuration options."""
    return {
        "success": True,
        "data": {
            "aspectRatios": services.imagen.available_aspect_ratios(),
            "personGenerationOptions": services.imagen.person_generation_options(),
        },
    }


@router.get("/images")
async def list_image_files(services: Services = Depends(get_services)):
    """List generated image files."""
    files = await services.imagen.list_image_files()
    return {"success": True, "data": [f.to_json_dict() for f in files]}
