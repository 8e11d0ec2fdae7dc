"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from utils.exceptions import AppError
from engine.job_queue import JobQueue
from services.transcription_service import TranscriptionService

# Configure logging to show INFO level logs (needed for perf_logger)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True  # Override any existing config
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Wires the transcription runner into the queue and starts/stops the worker.
    """
    # === STARTUP ===
    logger.info("Starting application...")

    queue = JobQueue.get_instance()
    queue.set_runner(TranscriptionService().run)
    await queue.start_worker()

    logger.info("Application ready")

    yield

    # === SHUTDOWN ===
    logger.info("Shutting down...")
    await queue.stop_worker(wait_for_current=False)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Batch audio/video to subtitles using Gemini",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request, exc: AppError):
    """Global handler for custom application errors."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Include routers
from routers import queue, export, system
app.include_router(queue.router, prefix="/api/queue", tags=["Queue"])
app.include_router(export.router, prefix="/api/export", tags=["Export"])
app.include_router(system.router, prefix="/api/system", tags=["System"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    queue = JobQueue.get_instance()
    return {
        "status": "healthy",
        "app": settings.app_name,
        "queue_size": queue.queue_size,
        "is_processing": queue.is_processing,
        "worker_running": queue.is_running
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
