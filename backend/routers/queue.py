"""
Queue endpoints: batch upload, inspection, retry, removal.
"""

import logging
from typing import List

from fastapi import APIRouter, File, UploadFile

from engine.job_queue import JobQueue, enqueue_sources
from services.file_service import FileError, FileService
from utils.exceptions import JobNotFoundError, ValidationError
from utils.subtitles import format_file_size, parse_cues

logger = logging.getLogger(__name__)
router = APIRouter()
file_service = FileService()


def _job_payload(job) -> dict:
    payload = job.to_dict()
    payload["size_label"] = format_file_size(job.source.size)
    return payload


def _get_job_or_404(job_id: str):
    job = JobQueue.get_instance().get(job_id)
    if not job:
        raise JobNotFoundError(job_id)
    return job


@router.post("/upload")
async def upload_files(files: List[UploadFile] = File(...)):
    """
    Upload a batch of media files and queue them for transcription.

    Files that are not audio/video or exceed the size limit are skipped
    and reported; the rest are queued in the order received.
    """
    sources = []
    skipped = []

    for upload in files:
        filename = upload.filename or "untitled"
        try:
            file_service.validate_file(filename, upload.content_type, upload.size or 0)
            sources.append(
                await file_service.save_upload(upload, filename, upload.content_type)
            )
        except FileError as e:
            logger.warning(f"Skipped {filename}: {e}")
            skipped.append({"filename": filename, "reason": str(e)})

    if not sources:
        raise ValidationError("No valid audio/video files found in the selection.")

    job_ids = enqueue_sources(sources)
    queue = JobQueue.get_instance()

    return {
        "job_ids": job_ids,
        "jobs": [_job_payload(queue.get(job_id)) for job_id in job_ids],
        "skipped": skipped,
    }


@router.get("/")
async def list_jobs():
    """List all jobs in queue order with aggregate progress."""
    queue = JobQueue.get_instance()
    return {
        "jobs": [_job_payload(job) for job in queue.jobs()],
        "stats": queue.stats(),
    }


@router.delete("/")
async def clear_queue():
    """Remove every job. A running transcription finishes but is discarded."""
    removed = JobQueue.get_instance().clear()
    for job in removed:
        file_service.delete_source(job.source)
    return {"message": "Queue cleared", "removed": len(removed)}


@router.get("/{job_id}")
async def get_job(job_id: str):
    """Get a single job."""
    return _job_payload(_get_job_or_404(job_id))


@router.get("/{job_id}/cues")
async def get_job_cues(job_id: str):
    """Read-only cue view of a completed job's subtitles."""
    job = _get_job_or_404(job_id)
    return {
        "id": job.id,
        "status": job.status.value,
        "cues": [
            {"start": cue.start, "end": cue.end, "text": cue.text}
            for cue in parse_cues(job.result or "")
        ],
    }


@router.post("/{job_id}/retry")
async def retry_job(job_id: str):
    """
    Put a finished job back in the queue.
    Idle or processing jobs are left untouched.
    """
    queue = JobQueue.get_instance()
    job = _get_job_or_404(job_id)
    reset = queue.retry(job_id)
    return {"retried": reset, "job": _job_payload(job)}


@router.delete("/{job_id}")
async def remove_job(job_id: str):
    """Remove a job from the queue regardless of status."""
    job = JobQueue.get_instance().remove(job_id)
    if not job:
        raise JobNotFoundError(job_id)

    file_service.delete_source(job.source)
    return {"message": "Job removed", "id": job_id}
