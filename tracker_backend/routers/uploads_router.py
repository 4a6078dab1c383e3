# tracker_backend/routers/uploads_router.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ..schemas.uploads import UploadResponse
from ..services.upload_service import UploadService, get_upload_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=UploadResponse)
def upload_image(
    image: Optional[UploadFile] = File(None, description="image file"),
    service: UploadService = Depends(get_upload_service),
):
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No image data found")
    try:
        url = service.save(image.file, image.filename)
    except OSError:
        logger.exception("Failed to store upload %r", image.filename)
        raise HTTPException(status_code=500, detail="Failed to upload image")
    finally:
        image.file.close()
    return UploadResponse(url=url)
