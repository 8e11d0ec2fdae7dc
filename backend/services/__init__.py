"""
Services package.
"""

from services.transcription_service import TranscriptionService
from services.file_service import FileService

__all__ = ["TranscriptionService", "FileService"]
