"""
Object photo endpoints

Upload, list and delete photos per object. Stored files are served under
/uploads/{object_id}/{filename}.
"""
import logging
import time
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from app.api.utils import require_safe_segment
from app.core import config
from app.database import storage as database
from app.models.schemas import ImageInfo, ImageListResponse, ImageUploadResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Mounted at the app root, outside /api
uploads_router = APIRouter()

ALLOWED_CONTENT_TYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/webp'}

MEDIA_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.webp': 'image/webp',
}


def _image_url(object_id: str, filename: str) -> str:
    return f"/uploads/{object_id}/{filename}"


@router.post("/objects/{object_id}/images", response_model=ImageUploadResponse)
async def upload_image(object_id: str, image: UploadFile = File(...)):
    """
    Upload a photo for an object

    Accepts JPEG, PNG or WEBP up to 10MB. The stored filename is the upload
    time in milliseconds plus the original extension.
    """
    require_safe_segment(object_id, "object id")

    # Validate file type by extension and declared content type
    file_extension = Path(image.filename).suffix.lower() if image.filename else ''
    if file_extension not in database.IMAGE_EXTENSIONS or (image.content_type or '').lower() not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Only images (jpeg, jpg, png, webp) are allowed"
        )

    content = await image.read(config.MAX_UPLOAD_BYTES + 1)
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 10MB)")

    filename = f"{int(time.time() * 1000)}{file_extension}"
    try:
        database.save_image(object_id, filename, content)
    except OSError as e:
        logger.error(f"[Images] Upload for {object_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to save file")

    return ImageUploadResponse(success=True, imageUrl=_image_url(object_id, filename), filename=filename)


@router.get("/objects/{object_id}/images", response_model=ImageListResponse)
async def get_images(object_id: str):
    """
    List photos of an object
    """
    require_safe_segment(object_id, "object id")

    images = [
        ImageInfo(filename=filename, url=_image_url(object_id, filename))
        for filename in database.list_images(object_id)
    ]
    return ImageListResponse(images=images)


@router.delete("/objects/{object_id}/images/{filename}")
async def delete_image(object_id: str, filename: str):
    """
    Delete a photo of an object
    """
    require_safe_segment(object_id, "object id")
    require_safe_segment(filename, "filename")

    if not database.delete_image(object_id, filename):
        raise HTTPException(status_code=404, detail="Image not found")

    return {"success": True}


@uploads_router.get("/uploads/{object_id}/{filename}")
async def get_uploaded_image(object_id: str, filename: str):
    """
    Serve a stored photo, the target of imageUrl
    """
    require_safe_segment(object_id, "object id")
    require_safe_segment(filename, "filename")

    path = database.get_image_path(object_id, filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Image not found")

    return FileResponse(path=str(path), media_type=MEDIA_TYPES[path.suffix.lower()])
