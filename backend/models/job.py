"""
In-memory job models for the transcription queue.
"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_job_id() -> str:
    """Random hex identifier, unique for the lifetime of the queue."""
    return uuid.uuid4().hex


class JobStatus(str, enum.Enum):
    """Status of a transcription job."""
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_finished(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


@dataclass(frozen=True)
class SourceRef:
    """Handle to an uploaded media file. Never changes after upload."""
    filename: str
    file_path: str
    media_type: str
    size: int = 0


@dataclass
class TranscriptionJob:
    """A job in the transcription queue."""
    source: SourceRef
    id: str = field(default_factory=generate_job_id)
    status: JobStatus = JobStatus.IDLE
    result: Optional[str] = None
    error: Optional[str] = None
    enqueued_at: datetime = field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def mark_processing(self) -> None:
        self.status = JobStatus.PROCESSING
        self.result = None
        self.error = None
        self.started_at = _utcnow()
        self.finished_at = None

    def mark_completed(self, result: str) -> None:
        self.status = JobStatus.COMPLETED
        self.result = result
        self.error = None
        self.finished_at = _utcnow()

    def mark_error(self, message: str) -> None:
        self.status = JobStatus.ERROR
        self.result = None
        self.error = message
        self.finished_at = _utcnow()

    def reset(self) -> None:
        """Back to idle so the scheduler picks it up again."""
        self.status = JobStatus.IDLE
        self.result = None
        self.error = None
        self.started_at = None
        self.finished_at = None

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot for API responses."""
        return {
            "id": self.id,
            "filename": self.source.filename,
            "media_type": self.source.media_type,
            "size": self.source.size,
            "status": self.status.value,
            "subtitles": self.result,
            "error": self.error,
            "enqueued_at": self.enqueued_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
