"""
Image endpoints.

Uploads arrive as multipart form data; the bytes are stored in the
database and served back with their MIME type.
"""
import logging

from fastapi import Depends, File, Form, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..errors import EntityNotFoundError, ValidationError
from ..managers.image_manager import image_manager
from ..schemas import ImageCreate, ImageUpdate
from .common import build_crud_router, dump, success

logger = logging.getLogger(__name__)

router = build_crud_router("/images", image_manager, None, ImageUpdate)


@router.post("", status_code=201)
def upload_image(
    file: UploadFile = File(...),
    user_id: int = Form(..., alias="userId"),
    width: int = Form(...),
    height: int = Form(...),
    is_public: bool = Form(False, alias="isPublic"),
    db: Session = Depends(get_db),
):
    """
    Upload an image for a user.

    Args:
        file: Uploaded image file (JPEG, PNG or WebP)
        user_id: Owner of the image
        width: Image width in pixels
        height: Image height in pixels
        is_public: Whether other users may see the image

    Returns:
        Stored image metadata
    """
    # At most one byte past the limit is read
    data = file.file.read(settings.max_image_size + 1)
    if len(data) > settings.max_image_size:
        raise ValidationError(f"Image size must be between 1 and {settings.max_image_size:,} bytes")

    try:
        payload = ImageCreate(
            filename=file.filename or "",
            size=len(data),
            width=width,
            height=height,
            mime_type=file.content_type,
            user_id=user_id,
            is_public=is_public,
            data=data,
        )
    except SchemaValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        logger.warning(f"Rejected upload of '{file.filename}': {field}: {error['msg']}")
        raise ValidationError(f"Invalid image {field}: {error['msg']}") from e

    image = image_manager.create(db, payload)
    return success(dump(image), message="Image uploaded successfully")


@router.get("/{image_id}/file")
def download_image(image_id: int, db: Session = Depends(get_db)):
    """Return the raw image bytes with the stored MIME type."""
    result = image_manager.get_buffer(db, image_id)
    if result is None:
        raise EntityNotFoundError("Image", image_id)

    content, mime_type = result
    return Response(content=content, media_type=mime_type)
