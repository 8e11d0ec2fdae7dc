"""
Singleton TranscriptionManager using the Gemini API.
Sends media bytes to the model and returns sanitized WebVTT text.
"""

import logging
from typing import Optional

from google import genai
from google.genai import types

from config import settings
from utils.exceptions import ProcessingError
from utils.subtitles import clean_vtt

logger = logging.getLogger(__name__)


SUBTITLE_PROMPT = """
Listen to this audio file and generate subtitles in WebVTT format.

Rules:
1. Output MUST start with "WEBVTT".
2. Include precise timestamps in the format HH:MM:SS.mmm.
3. Do not include any conversational text, introductions, or markdown formatting (like ```vtt).
4. Just provide the raw VTT content.
"""


class TranscriptionManager:
    """
    Singleton manager for Gemini transcription.

    Creates the API client once and reuses it for all transcriptions.
    """

    _instance: Optional["TranscriptionManager"] = None

    def __init__(self):
        self._client: Optional[genai.Client] = None
        self._model_name = settings.gemini_model

    @classmethod
    def get_instance(cls) -> "TranscriptionManager":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def model_name(self) -> str:
        return self._model_name

    def reload_model(self, new_model_name: str) -> None:
        """Switch the model used for subsequent transcriptions."""
        if self._model_name == new_model_name:
            logger.info(f"Model {new_model_name} already selected.")
            return

        logger.info(f"Switching model from {self._model_name} to {new_model_name}...")
        self._model_name = new_model_name
        settings.gemini_model = new_model_name

    def _load_client(self) -> genai.Client:
        """Create the Gemini client (lazy loading)."""
        if self._client is not None:
            return self._client

        if not settings.gemini_api_key:
            raise ProcessingError(
                "API Key is missing. Please check your environment configuration."
            )

        self._client = genai.Client(api_key=settings.gemini_api_key)
        logger.info("Gemini client initialized")
        return self._client

    async def transcribe(self, data: bytes, media_type: str) -> str:
        """
        Transcribe raw media bytes into WebVTT.

        Args:
            data: Media file content
            media_type: MIME type of the content (e.g., "audio/mpeg")

        Returns:
            WebVTT text starting with the WEBVTT header

        Raises:
            ProcessingError: If the key is missing or the model returns no text
        """
        client = self._load_client()

        logger.info(f"Requesting subtitles: model={self._model_name}, media_type={media_type}, bytes={len(data)}")

        try:
            response = await client.aio.models.generate_content(
                model=self._model_name,
                contents=[
                    types.Part.from_bytes(data=data, mime_type=media_type),
                    SUBTITLE_PROMPT,
                ],
            )
        except Exception as e:
            logger.error(f"Gemini API Error: {e}")
            raise

        return clean_vtt(response.text)
