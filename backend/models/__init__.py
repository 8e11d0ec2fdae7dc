"""
Job models package.
"""

from models.job import JobStatus, SourceRef, TranscriptionJob, generate_job_id

__all__ = [
    "JobStatus",
    "SourceRef",
    "TranscriptionJob",
    "generate_job_id",
]
