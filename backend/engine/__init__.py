"""
Engine package for transcription processing.
Contains the Gemini TranscriptionManager and the job queue.
"""

from engine.transcription_manager import TranscriptionManager
from engine.job_queue import JobQueue, enqueue_sources

__all__ = [
    "TranscriptionManager",
    "JobQueue",
    "enqueue_sources",
]
