"""
Subtitle export endpoints (WebVTT, SRT, ZIP of SRT files).
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter
from fastapi.responses import Response

from engine.job_queue import JobQueue
from models.job import JobStatus
from utils.exceptions import JobNotFoundError, JobStateError, NotFoundError
from utils.subtitles import build_zip_archive, export_basename, vtt_to_srt

logger = logging.getLogger(__name__)
router = APIRouter()

ZIP_FILENAME = "subtitles_srt.zip"


def _attachment(content, filename: str, media_type: str) -> Response:
    # headers are latin-1; keep an ASCII fallback next to the RFC 5987 form
    fallback = filename.encode("ascii", "ignore").decode() or "subtitles"
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": (
                f'attachment; filename="{fallback}"; '
                f"filename*=UTF-8''{quote(filename)}"
            )
        },
    )


def _unique_names(names):
    taken = set()
    for name in names:
        stem, _, ext = name.rpartition(".")
        candidate, n = name, 1
        while candidate in taken:
            n += 1
            candidate = f"{stem} ({n}).{ext}"
        taken.add(candidate)
        yield candidate


def _completed_job(job_id: str):
    job = JobQueue.get_instance().get(job_id)
    if not job:
        raise JobNotFoundError(job_id)
    if job.status != JobStatus.COMPLETED or not job.result:
        raise JobStateError(job_id, job.status.value, "export")
    return job


@router.get("/zip")
async def download_all_srt():
    """Download every completed job as .srt, packed in one ZIP."""
    completed = [
        job for job in JobQueue.get_instance().jobs()
        if job.status == JobStatus.COMPLETED and job.result
    ]
    if not completed:
        raise NotFoundError("No completed subtitles to download")

    names = _unique_names(f"{export_basename(job.source.filename)}.srt" for job in completed)
    files = [(name, vtt_to_srt(job.result)) for name, job in zip(names, completed)]
    logger.info(f"Packing {len(files)} subtitle files into {ZIP_FILENAME}")
    return _attachment(build_zip_archive(files), ZIP_FILENAME, "application/zip")


@router.get("/{job_id}/vtt")
async def download_vtt(job_id: str):
    """Download the raw WebVTT exactly as produced."""
    job = _completed_job(job_id)
    filename = f"{export_basename(job.source.filename)}.vtt"
    return _attachment(job.result, filename, "text/vtt")


@router.get("/{job_id}/srt")
async def download_srt(job_id: str):
    """Download the subtitles converted to SRT."""
    job = _completed_job(job_id)
    filename = f"{export_basename(job.source.filename)}.srt"
    return _attachment(vtt_to_srt(job.result), filename, "text/plain")
