"""
Transcription service.
Glues the source encoder and the Gemini manager into the queue's runner.
"""

import logging
from pathlib import Path
from typing import Optional

from engine.transcription_manager import TranscriptionManager
from models.job import SourceRef
from services.file_service import FileService
from utils.perf_logger import perf_logger

logger = logging.getLogger(__name__)


class TranscriptionService:
    """Runs one source through encoding and transcription."""

    def __init__(
        self,
        file_service: Optional[FileService] = None,
        manager: Optional[TranscriptionManager] = None,
    ):
        self.file_service = file_service or FileService()
        self.manager = manager or TranscriptionManager.get_instance()

    async def run(self, source: SourceRef) -> str:
        """
        Produce WebVTT subtitles for a stored upload.

        Any exception raised here becomes the job's error message.
        """
        stored_name = Path(source.file_path).name

        with perf_logger.phase(f"Encoding ({stored_name})"):
            data, media_type = await self.file_service.read_source(source)

        with perf_logger.phase(f"Transcription ({stored_name})"):
            subtitles = await self.manager.transcribe(data, media_type)

        logger.info(f"Subtitles generated: file={source.filename}, chars={len(subtitles)}")
        return subtitles
