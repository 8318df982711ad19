"""Upload service — stores uploaded files on local disk and shrinks images."""

import os
import re
import time
from io import BytesIO
from typing import Optional

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from backoffice.core.config import settings
from backoffice.core.exceptions import PayloadTooLargeError, ValidationError
from backoffice.core.logging_config import get_logger

logger = get_logger("services.upload")

UPLOAD_TYPE_PATTERN = re.compile(r"^[a-z0-9_-]+$")
IMAGE_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")
URL_PREFIX = "/uploads"


def is_image(filename: Optional[str], content_type: Optional[str]) -> bool:
    if content_type and content_type.lower() in IMAGE_MIME_TYPES:
        return True
    ext = os.path.splitext(filename or "")[1].lower()
    return ext in IMAGE_EXTENSIONS


def compress_image(content: bytes, max_dimension: int, quality: int) -> bytes:
    """Fit the image inside ``max_dimension`` (never enlarged) and re-encode it.

    Returns the original bytes when Pillow cannot read or write the image.
    """
    try:
        with Image.open(BytesIO(content)) as image:
            image_format = image.format
            image.thumbnail((max_dimension, max_dimension))
            if image_format == "JPEG" and image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            out = BytesIO()
            save_kwargs = {"optimize": True}
            if image_format in ("JPEG", "WEBP"):
                save_kwargs["quality"] = quality
            image.save(out, format=image_format, **save_kwargs)
            return out.getvalue()
    except (UnidentifiedImageError, OSError, ValueError):
        logger.warning("image_compression_failed_keeping_original")
        return content


def public_base_url(request_base_url: str) -> str:
    """``BASE_URL_DOMAIN`` when configured, otherwise the request's own base URL."""
    return (settings.BASE_URL_DOMAIN or request_base_url).rstrip("/")


class UploadService:
    """Saves files under ``UPLOAD_DIR/<type>/<epoch-ms><ext>``."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR

    async def save(self, upload_type: str, upload: UploadFile) -> str:
        """Store one upload and return its path relative to the upload root."""
        if not UPLOAD_TYPE_PATTERN.match(upload_type or ""):
            raise ValidationError("Invalid upload type")
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded")

        content = await upload.read()
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise PayloadTooLargeError(
                f"File exceeds the {settings.MAX_UPLOAD_SIZE_MB}MB size limit"
            )

        if is_image(upload.filename, upload.content_type):
            content = compress_image(
                content, settings.IMAGE_MAX_DIMENSION, settings.IMAGE_QUALITY,
            )

        ext = os.path.splitext(upload.filename)[1].lower()
        filename = f"{int(time.time() * 1000)}{ext}"
        target_dir = os.path.join(self.upload_dir, upload_type)
        os.makedirs(target_dir, exist_ok=True)
        with open(os.path.join(target_dir, filename), "wb") as f:
            f.write(content)

        logger.info(
            "file_uploaded",
            extra={"upload_type": upload_type, "file_name": filename, "size_bytes": len(content)},
        )
        return f"{upload_type}/{filename}"

    @staticmethod
    def public_url(relative_path: str, request_base_url: str) -> str:
        return f"{public_base_url(request_base_url)}{URL_PREFIX}/{relative_path}"


upload_service = UploadService()
