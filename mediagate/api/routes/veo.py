"""Video generation routes.

Endpoints:
    POST /api/ai/veo                          Start generation, returns an operation handle
    GET  /api/ai/veo/status/{operationName}   Poll; downloads the video once when complete
    GET  /api/ai/veo/options                  Aspect ratios / durations / person policies
    GET  /api/ai/veo/videos                   Previously generated video files
    GET  /api/ai/veo/videos/{filename}        Download one video file
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from mediagate.api.deps import Services, get_services
from mediagate.generation.schemas import VeoRequest, VideoStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/veo", tags=["veo"])


@router.post("")
async def start_video_generation(request: VeoRequest, services: Services = Depends(get_services)):
    """Start a video generation job.

    Returns immediately with the operation name. Poll
    GET /api/ai/veo/status/{operationName} until ``completed``.
    """
    operation = await services.veo.generate_video(request)
    return {
        "success": True,
        "data": {
            "operationName": operation.operation_name,
            "status": operation.status.value,
        },
    }


@router.get("/status/{operation_name:path}")
async def get_video_status(operation_name: str, services: Services = Depends(get_services)):
    """Check a video operation.

    On the first ``completed`` observation the video is downloaded into
    the videos folder; later polls reuse that file.
    """
    operation = await services.veo.check_status(operation_name)
    data = operation.to_json_dict()

    if operation.status == VideoStatus.COMPLETED and operation.video_uri:
        file_path = await services.veo.ensure_downloaded(operation)
        data["filePath"] = str(file_path)
        data["videoUrl"] = f"/videos/{file_path.name}"
        logger.info(f"Video for {operation_name} available at {data['videoUrl']}")

    return {"success": True, "data": data}


@router.get("/options")
async def get_options(services: Services = Depends(get_services)):
    """Get the Veo configuration options."""
    return {
        "success": True,
        "data": {
            "aspectRatios": services.veo.available_aspect_ratios(),
            "durationOptions": services.veo.duration_options(),
            "personGenerationOptions": services.veo.person_generation_options(),
        },
    }


@router.get("/videos")
async def list_video_files(services: Services = Depends(get_services)):
    """List generated video files."""
    files = await services.veo.list_video_files()
    return {"success": True, "data": [f.to_json_dict() for f in files]}


@router.get("/videos/{filename}")
async def download_video_file(filename: str, services: Services = Depends(get_services)):
    """Download a generated video by filename."""
    file_path = services.storage.videos.resolve(filename)
    return FileResponse(file_path, media_type="video/mp4", filename=file_path.name)
