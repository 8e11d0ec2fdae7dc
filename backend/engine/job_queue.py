"""
In-memory transcription queue.
Runs at most one transcription at a time to bound cost against the model API.
"""

import asyncio
import functools
import itertools
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set

from models.job import JobStatus, SourceRef, TranscriptionJob
from utils.exceptions import ProcessingError

logger = logging.getLogger(__name__)

Runner = Callable[[SourceRef], Awaitable[str]]

DEFAULT_FAILURE_MESSAGE = "Processing failed"
EMPTY_RESULT_MESSAGE = "No text generated from the model."


class JobQueue:
    """
    Ordered job queue with single-flight scheduling.

    Every mutating call re-evaluates the scheduling condition: when nothing
    is in flight and an idle job exists, the oldest idle job is claimed and
    handed to the runner in a background task. Readers get snapshots only.
    """

    _instance: Optional["JobQueue"] = None

    def __init__(self):
        self._jobs: Dict[str, TranscriptionJob] = {}
        self._runner: Optional[Runner] = None
        self._running = False
        self._claims = itertools.count(1)
        # Claim number of the outstanding runner call, None when idle
        self._in_flight: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def get_instance(cls) -> "JobQueue":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def set_runner(self, runner: Runner) -> None:
        """
        Set the async function that turns a source into WebVTT text.

        Args:
            runner: Async function taking a SourceRef and returning the transcript
        """
        self._runner = runner

    # --- Mutations ---

    def enqueue(self, sources: Iterable[SourceRef]) -> List[str]:
        """Append idle jobs in the given order and return their ids."""
        job_ids = []
        for source in sources:
            job = TranscriptionJob(source=source)
            self._jobs[job.id] = job
            job_ids.append(job.id)

        logger.info(f"Jobs enqueued: count={len(job_ids)}, queue_size={len(self._jobs)}")
        self._schedule()
        return job_ids

    def retry(self, job_id: str) -> bool:
        """
        Reset a finished job to idle.
        Returns False (and changes nothing) unless the job is completed or errored.
        """
        job = self._jobs.get(job_id)
        if job is None or not job.status.is_finished:
            return False

        job.reset()
        logger.info(f"Job reset for retry: job_id={job_id}")
        self._schedule()
        return True

    def remove(self, job_id: str) -> Optional[TranscriptionJob]:
        """
        Delete a job whatever its status.
        A running call for it is not aborted; its outcome is dropped later.
        """
        job = self._jobs.pop(job_id, None)
        if job is None:
            return None

        if job.status == JobStatus.PROCESSING:
            logger.info(f"Removed in-flight job, result will be discarded: job_id={job_id}")
        else:
            logger.info(f"Job removed: job_id={job_id}")
        self._schedule()
        return job

    def clear(self) -> List[TranscriptionJob]:
        """Remove every job and release the in-flight flag."""
        removed = list(self._jobs.values())
        self._jobs.clear()
        self._in_flight = None
        logger.info(f"Queue cleared: removed={len(removed)}")
        self._schedule()
        return removed

    # --- Reads ---

    def get(self, job_id: str) -> Optional[TranscriptionJob]:
        return self._jobs.get(job_id)

    def jobs(self) -> List[TranscriptionJob]:
        return list(self._jobs.values())

    def stats(self) -> Dict[str, object]:
        """Counts per status plus overall progress."""
        counts = {status.value: 0 for status in JobStatus}
        for job in self._jobs.values():
            counts[job.status.value] += 1

        total = len(self._jobs)
        finished = counts[JobStatus.COMPLETED.value] + counts[JobStatus.ERROR.value]
        return {
            "total": total,
            **counts,
            "is_processing": self.is_processing,
            "all_finished": finished == total,
            "progress": finished / total if total else 0.0,
        }

    @property
    def queue_size(self) -> int:
        """Number of jobs waiting to start."""
        return sum(1 for job in self._jobs.values() if job.status == JobStatus.IDLE)

    @property
    def is_processing(self) -> bool:
        return self._in_flight is not None

    @property
    def is_running(self) -> bool:
        """Whether the worker is running."""
        return self._running

    # --- Worker lifecycle ---

    async def start_worker(self) -> None:
        """Start dispatching idle jobs."""
        if self._running:
            logger.warning("Worker already running")
            return

        if self._runner is None:
            raise RuntimeError("No runner set. Call set_runner() first.")

        self._running = True
        logger.info("Job queue worker started (concurrency=1)")
        self._schedule()

    async def stop_worker(self, wait_for_current: bool = True) -> None:
        """
        Stop dispatching new jobs.

        Args:
            wait_for_current: If True, wait for the running call to finish,
                otherwise cancel it
        """
        self._running = False

        if wait_for_current:
            await self.join()
        else:
            for task in list(self._tasks):
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)

        logger.info("Job queue worker stopped")

    async def join(self) -> None:
        """Wait until no runner call is outstanding and nothing more will start."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Scheduling ---

    def _schedule(self) -> None:
        """Claim the oldest idle job if nothing is in flight."""
        if not self._running or self._in_flight is not None:
            return

        job = next((j for j in self._jobs.values() if j.status == JobStatus.IDLE), None)
        if job is None:
            return

        claim = next(self._claims)
        self._in_flight = claim
        job.mark_processing()
        logger.info(f"Processing job: job_id={job.id}, file={job.source.filename}")

        task = asyncio.get_running_loop().create_task(
            self._run(job.id, job.source, claim), name=f"transcribe-{job.id}"
        )
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_task_done, job.id, claim))

    async def _run(self, job_id: str, source: SourceRef, claim: int) -> None:
        try:
            text = await self._runner(source)
            if not text or not text.strip():
                raise ProcessingError(EMPTY_RESULT_MESSAGE)
        except asyncio.CancelledError:
            self._finish(job_id, claim, error="Cancelled before completion")
            raise
        except Exception as e:
            logger.error(f"Job failed: job_id={job_id}, error={e}")
            self._finish(job_id, claim, error=str(e) or DEFAULT_FAILURE_MESSAGE)
        else:
            self._finish(job_id, claim, result=text)

    def _on_task_done(self, job_id: str, claim: int, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        # A task cancelled before its first step never enters _run
        if task.cancelled() and self._in_flight == claim:
            self._finish(job_id, claim, error="Cancelled before completion")

    def _finish(
        self,
        job_id: str,
        claim: int,
        result: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        # clear() may already have handed the flag to a newer claim
        if self._in_flight == claim:
            self._in_flight = None

        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.PROCESSING:
            logger.info(f"Discarding outcome for removed job: job_id={job_id}")
        elif error is not None:
            job.mark_error(error)
        else:
            job.mark_completed(result)
            logger.info(f"Job completed: job_id={job_id}")

        self._schedule()


def enqueue_sources(sources: Iterable[SourceRef]) -> List[str]:
    """
    Enqueue transcription jobs on the shared queue.

    This is the main entry point for adding transcription work.
    """
    return JobQueue.get_instance().enqueue(sources)
