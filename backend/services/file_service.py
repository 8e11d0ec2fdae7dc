"""
File upload service.
Handles media validation, temporary storage, and reading sources back
as bytes for the transcription model.
"""

import uuid
import logging
import aiofiles
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from config import settings
from models.job import SourceRef
from utils.exceptions import ProcessingError

logger = logging.getLogger(__name__)


class FileError(Exception):
    """Base exception for file-related errors."""
    pass


class InvalidFileError(FileError):
    """Raised when file is neither audio nor video."""
    pass


class FileSizeError(FileError):
    """Raised when file exceeds size limit."""
    pass


MEDIA_TYPES = {
    '.mp3': 'audio/mpeg',
    '.mpeg': 'audio/mpeg',
    '.wav': 'audio/wav',
    '.m4a': 'audio/mp4',
    '.aac': 'audio/aac',
    '.ogg': 'audio/ogg',
    '.flac': 'audio/flac',
    '.wma': 'audio/x-ms-wma',
    '.mp4': 'video/mp4',
    '.mov': 'video/quicktime',
    '.mkv': 'video/x-matroska',
    '.webm': 'video/webm',
}


def is_media_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith(('audio/', 'video/'))


class FileService:
    """Service for handling media uploads."""

    def __init__(self):
        self.max_size = settings.max_upload_size_mb * 1024 * 1024  # Convert to bytes
        self.allowed_extensions = settings.allowed_extensions

    @property
    def upload_dir(self) -> Path:
        return Path(settings.upload_dir)

    def validate_file(self, filename: str, content_type: Optional[str], file_size: int) -> None:
        """
        Validate that a file looks like audio/video and fits the size limit.

        A generic or missing content type is accepted when the extension is known.

        Raises:
            InvalidFileError: If neither the type nor the extension is media
            FileSizeError: If file too large
        """
        ext = Path(filename).suffix.lower()

        if not is_media_type(content_type) and ext not in self.allowed_extensions:
            raise InvalidFileError(
                f"File type '{ext or content_type}' not allowed. "
                f"Allowed types: audio/*, video/* or {', '.join(sorted(self.allowed_extensions))}"
            )

        if file_size > self.max_size:
            max_mb = settings.max_upload_size_mb
            raise FileSizeError(f"File too large. Maximum size is {max_mb}MB")

    async def save_upload(
        self,
        file: BinaryIO,
        filename: str,
        content_type: Optional[str] = None,
        chunk_size: int = 1024 * 1024  # 1MB chunks
    ) -> SourceRef:
        """
        Save uploaded file to disk.

        Args:
            file: File-like object to read from
            filename: Original filename
            content_type: MIME type reported by the client
            chunk_size: Size of chunks to read/write

        Returns:
            SourceRef pointing at the stored copy
        """
        self.upload_dir.mkdir(parents=True, exist_ok=True)

        # Generate unique filename to prevent collisions
        file_id = str(uuid.uuid4())[:8]
        safe_filename = f"{file_id}_{self._sanitize_filename(filename)}"

        file_path = self.upload_dir / safe_filename

        try:
            # Stream file to disk in chunks
            total_size = 0
            async with aiofiles.open(file_path, 'wb') as out_file:
                while chunk := await file.read(chunk_size):
                    total_size += len(chunk)

                    # Check size during upload
                    if total_size > self.max_size:
                        raise FileSizeError(
                            f"File too large. Maximum size is {settings.max_upload_size_mb}MB"
                        )

                    await out_file.write(chunk)

            logger.info(f"Saved upload: {safe_filename} ({total_size} bytes)")

            return SourceRef(
                filename=filename,
                file_path=str(file_path),
                media_type=self._get_media_type(filename, content_type),
                size=total_size,
            )

        except FileSizeError:
            if file_path.exists():
                file_path.unlink()  # Delete partial file
            raise
        except Exception as e:
            # Clean up on error
            if file_path.exists():
                file_path.unlink()
            logger.error(f"Failed to save upload: {e}")
            raise FileError(f"Failed to save file: {str(e)}")

    async def read_source(self, source: SourceRef) -> Tuple[bytes, str]:
        """
        Read a stored upload back for the model.

        Raises:
            ProcessingError: If the file can no longer be read
        """
        try:
            async with aiofiles.open(source.file_path, 'rb') as in_file:
                data = await in_file.read()
        except OSError as e:
            logger.error(f"Failed to read source {source.file_path}: {e}")
            raise ProcessingError(f"Failed to read file '{source.filename}': {e.strerror or e}")

        return data, source.media_type

    def _sanitize_filename(self, filename: str) -> str:
        """Remove unsafe characters from filename."""
        # Keep alphanumeric, dots, dashes, and underscores
        safe_chars = set('abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.-_')
        return ''.join(c if c in safe_chars else '_' for c in Path(filename).name)

    def _get_media_type(self, filename: str, content_type: Optional[str] = None) -> str:
        """Prefer the client's MIME type, otherwise guess from the extension."""
        if is_media_type(content_type):
            return content_type
        return MEDIA_TYPES.get(Path(filename).suffix.lower(), 'application/octet-stream')

    def delete_source(self, source: SourceRef) -> bool:
        """Delete the stored copy of an upload."""
        file_path = Path(source.file_path)
        if file_path.exists():
            file_path.unlink()
            logger.info(f"Deleted file: {file_path.name}")
            return True
        return False
