"""
Image management.

Images are stored as blobs alongside their metadata. Filenames are unique
per user and their extension must match the MIME type.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..config import settings
from ..errors import BusinessLogicError, EntityNotFoundError, ValidationError
from ..models import Image, User
from ..schemas import ImageCreate, ImageResponse, Pagination
from .base import BaseManager, atomic, clean_name, validate_id

logger = logging.getLogger(__name__)

EXTENSIONS_BY_MIME_TYPE = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/webp": ("webp",),
}


def check_extension(filename: str, mime_type: str) -> None:
    """Ensure the filename extension matches the MIME type."""
    if mime_type not in EXTENSIONS_BY_MIME_TYPE:
        raise ValidationError(f"MIME type must be one of: {', '.join(EXTENSIONS_BY_MIME_TYPE)}")

    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension not in EXTENSIONS_BY_MIME_TYPE[mime_type]:
        raise ValidationError(f"File extension does not match MIME type {mime_type}")


class ImageManager(BaseManager):
    """Manages uploaded images."""

    model = Image
    response_model = ImageResponse
    entity_name = "Image"
    unique_field = "filename"
    default_order = "filename"
    searchable_fields = ("filename", "mime_type")
    hidden_fields = ("blob",)

    def _check_dimensions(self, values: Dict[str, Any]) -> None:
        limit = settings.max_image_dimension
        for field in ("width", "height"):
            if field in values:
                value = values[field]
                if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= limit:
                    raise ValidationError(f"Image {field} must be between 1 and {limit} pixels")

    def _active_user(self, db: Session, user_id: int, action: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise EntityNotFoundError("User", user_id)
        if not user.is_active:
            raise BusinessLogicError(f"Cannot {action} inactive user")
        return user

    def filename_exists(
        self, db: Session, user_id: int, filename: str, exclude_id: Optional[int] = None
    ) -> bool:
        """Check whether the user already has an image with this filename."""
        query = db.query(Image.id).filter(Image.user_id == user_id, Image.filename == filename)
        if exclude_id is not None:
            query = query.filter(Image.id != exclude_id)
        return query.first() is not None

    def create(self, db: Session, data: ImageCreate) -> ImageResponse:
        """
        Store a new image for an active user.

        Args:
            db: Database session
            data: Upload metadata and raw bytes

        Returns:
            Created image metadata
        """
        filename = clean_name(data.filename, "Image filename", 255)
        check_extension(filename, data.mime_type)

        if data.size < 1 or data.size > settings.max_image_size:
            raise ValidationError(
                f"Image size must be between 1 and {settings.max_image_size:,} bytes"
            )
        self._check_dimensions({"width": data.width, "height": data.height})
        validate_id(data.user_id, "User ID")

        if not isinstance(data.data, bytes):
            raise ValidationError("Image data must be bytes")
        if len(data.data) != data.size:
            raise ValidationError("Buffer size does not match declared file size")

        with atomic(db):
            self._active_user(db, data.user_id, "upload image for")

            image_count = db.query(Image).filter(Image.user_id == data.user_id).count()
            if image_count >= settings.max_images_per_user:
                raise BusinessLogicError(
                    f"User has reached maximum image limit ({settings.max_images_per_user} images)"
                )

            if self.filename_exists(db, data.user_id, filename):
                raise BusinessLogicError(f'Image with filename "{filename}" already exists for this user')

            image = Image(
                filename=filename,
                size=data.size,
                width=data.width,
                height=data.height,
                mime_type=data.mime_type,
                blob=data.data,
                is_public=data.is_public,
                user_id=data.user_id,
            )
            db.add(image)
            db.flush()
            image_id = image.id

        logger.info(f"Stored image {image_id} ({data.size} bytes) for user {data.user_id}")
        return self.to_response(self._fetch(db, image_id))

    def update(self, db: Session, entity_id: int, data) -> Optional[ImageResponse]:
        """Update image metadata; the stored bytes never change."""
        validate_id(entity_id, "Image ID")
        values = dict(data.model_dump(exclude_unset=True))

        if "filename" in values:
            values["filename"] = clean_name(values["filename"], "Image filename", 255)
        self._check_dimensions(values)
        if "is_public" in values and not isinstance(values["is_public"], bool):
            raise ValidationError("Image isPublic must be a boolean")

        with atomic(db):
            image = self._fetch(db, entity_id)
            if image is None:
                return None

            if "filename" in values:
                check_extension(values["filename"], image.mime_type)

            if "user_id" in values:
                validate_id(values["user_id"], "User ID")
                self._active_user(db, values["user_id"], "assign image to")

            owner_id = values.get("user_id", image.user_id)
            filename = values.get("filename", image.filename)
            if self.filename_exists(db, owner_id, filename, exclude_id=entity_id):
                raise BusinessLogicError(f'Image with filename "{filename}" already exists for this user')

            for field, value in values.items():
                setattr(image, field, value)

        logger.info(f"Updated image {entity_id}")
        return self.to_response(self._fetch(db, entity_id))

    def get_buffer(self, db: Session, entity_id: int) -> Optional[Tuple[bytes, str]]:
        """
        Get the raw bytes of an image.

        Returns:
            Tuple of (bytes, MIME type), or None if the image does not exist
        """
        validate_id(entity_id, "Image ID")
        image = self._fetch(db, entity_id)
        if image is None:
            return None
        return image.blob, image.mime_type

    def get_user_images(
        self,
        db: Session,
        user_id: int,
        page: int = 1,
        page_size: Optional[int] = None,
        order_by: Optional[str] = None,
        direction: str = "asc",
    ) -> Tuple[List[ImageResponse], Pagination]:
        """List images owned by an existing user."""
        validate_id(user_id, "User ID")
        if db.query(User.id).filter(User.id == user_id).first() is None:
            raise EntityNotFoundError("User", user_id)

        return self.get_many(
            db,
            page=page,
            page_size=page_size,
            order_by=order_by,
            direction=direction,
            filters={"user_id": user_id},
        )


# Global image manager instance
image_manager = ImageManager()
