"""
File upload utilities for image validation and local storage.
Uploads are validated here before they reach the image service.
"""

import io
import uuid
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence
from PIL import Image, UnidentifiedImageError
import aiofiles
import aiofiles.os
from fastapi import UploadFile

from listings_api.config import get_settings
from listings_api.utils.exceptions import BadRequestError, ValidationError

settings = get_settings()

logger = logging.getLogger(__name__)


@dataclass
class ValidatedUpload:
    """An uploaded image that passed validation, held in memory."""
    filename: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


class FileValidator:
    """Utility class for upload validation."""

    # Pillow format names accepted for each MIME type
    PIL_FORMATS = {
        'image/jpeg': 'JPEG',
        'image/jpg': 'JPEG',
        'image/png': 'PNG',
        'image/webp': 'WEBP',
    }

    @classmethod
    def validate_batch_size(cls, count: int, max_files: Optional[int] = None) -> int:
        """
        Validate the number of files in one upload.

        Raises:
            BadRequestError: If the batch is empty
            ValidationError: If the batch is too large
        """
        max_allowed = max_files or settings.max_files_per_upload
        if count < 1:
            raise BadRequestError("File upload error: no files provided")
        if count > max_allowed:
            raise ValidationError(f"Cannot upload more than {max_allowed} images at once")
        return count

    @classmethod
    def validate_mime_type(cls, mime_type: str) -> str:
        """
        Validate MIME type against the configured allow-list.

        Raises:
            ValidationError: If MIME type is not supported
        """
        if not mime_type:
            raise ValidationError("MIME type is required")

        if mime_type not in settings.allowed_file_types:
            raise ValidationError(
                f"MIME type '{mime_type}' not supported. "
                f"Supported types: {', '.join(settings.allowed_file_types)}"
            )

        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        """
        Validate file size.

        Raises:
            ValidationError: If file is empty or exceeds the limit
        """
        if file_size <= 0:
            raise ValidationError("File size must be greater than 0")

        max_allowed = max_size or settings.max_file_size
        if file_size > max_allowed:
            max_mb = max_allowed / (1024 * 1024)
            actual_mb = file_size / (1024 * 1024)
            raise ValidationError(
                f"File size ({actual_mb:.1f}MB) exceeds maximum allowed size ({max_mb:.1f}MB)"
            )

        return file_size

    @classmethod
    def validate_image_content(cls, content: bytes, mime_type: str) -> None:
        """
        Check that Pillow can decode the bytes and that the format matches the MIME type.

        Raises:
            ValidationError: If the content is not a matching image
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                pil_format = img.format
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

        if pil_format != cls.PIL_FORMATS.get(mime_type):
            raise ValidationError(
                f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'"
            )

    @classmethod
    async def validate_upload_file(cls, file: UploadFile) -> ValidatedUpload:
        """
        Comprehensive validation of one uploaded file.

        Args:
            file: FastAPI UploadFile object

        Returns:
            ValidatedUpload holding the file content

        Raises:
            ValidationError: If any validation fails
        """
        if not file.filename:
            raise ValidationError("Filename is required")

        mime_type = cls.validate_mime_type(file.content_type or "")

        await file.seek(0)
        content = await file.read()

        cls.validate_file_size(len(content))
        cls.validate_image_content(content, mime_type)

        return ValidatedUpload(filename=file.filename, content=content, mime_type=mime_type)

    @classmethod
    async def validate_upload_batch(cls, files: Sequence[UploadFile]) -> List[ValidatedUpload]:
        """Validate the batch size, then every file in order."""
        cls.validate_batch_size(len(files))
        return [await cls.validate_upload_file(file) for file in files]


class LocalFileStorage:
    """
    Stores image bytes under the upload directory.
    Paths handed out are relative to the base directory.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)

    def generate_unique_filename(self, original_filename: str) -> str:
        """Generate a unique filename while preserving the extension."""
        extension = Path(original_filename).suffix.lower()
        return f"{uuid.uuid4()}{extension}"

    def resolve(self, relative_path: str) -> Path:
        """Absolute location of a stored file."""
        return self.base_dir / relative_path

    async def store(self, property_id: uuid.UUID, filename: str, content: bytes) -> str:
        """
        Write bytes under a generated path for the property.

        Args:
            property_id: UUID of the property
            filename: Original filename, used for its extension
            content: File bytes

        Returns:
            Path of the stored file relative to the base directory
        """
        relative_path = Path("properties") / str(property_id) / self.generate_unique_filename(filename)
        full_path = self.resolve(str(relative_path))

        await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
        async with aiofiles.open(full_path, 'wb') as f:
            await f.write(content)

        logger.debug(f"Stored {len(content)} bytes at {relative_path}")
        return relative_path.as_posix()

    async def delete(self, relative_path: str) -> bool:
        """
        Delete a stored file.

        Returns:
            True if the file existed and was removed
        """
        full_path = self.resolve(relative_path)
        if not await aiofiles.os.path.exists(full_path):
            return False

        await aiofiles.os.remove(full_path)
        logger.debug(f"Deleted stored file {relative_path}")
        return True

    async def exists(self, relative_path: str) -> bool:
        return await aiofiles.os.path.exists(self.resolve(relative_path))


def get_file_storage() -> LocalFileStorage:
    """Storage bound to the configured upload directory."""
    return LocalFileStorage(Path(settings.upload_dir))
