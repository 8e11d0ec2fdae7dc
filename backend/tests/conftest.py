import asyncio
import pytest
import pytest_asyncio
from typing import AsyncGenerator, Dict, List

from httpx import AsyncClient, ASGITransport

from main import app
from config import settings
from engine.job_queue import JobQueue
from engine.transcription_manager import TranscriptionManager
from models.job import SourceRef

SAMPLE_VTT = (
    "WEBVTT\n"
    "\n"
    "00:00:00.000 --> 00:00:02.500\n"
    "Hello there.\n"
    "\n"
    "00:00:02.500 --> 00:00:05.000\n"
    "General Kenobi!\n"
)


class FakeRunner:
    """
    Controllable stand-in for the transcription runner.

    Each call blocks until the test resolves it (or resolves immediately
    when auto_resolve is set), and records the order sources were started.
    """

    def __init__(self, auto_resolve: bool = False, text: str = SAMPLE_VTT):
        self.auto_resolve = auto_resolve
        self.text = text
        self.started: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._pending: Dict[str, asyncio.Future] = {}

    async def __call__(self, source: SourceRef) -> str:
        self.started.append(source.filename)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.auto_resolve:
                await asyncio.sleep(0)
                return self.text
            future = asyncio.get_running_loop().create_future()
            self._pending[source.filename] = future
            return await future
        finally:
            self.in_flight -= 1

    def resolve(self, filename: str, text: str = None) -> None:
        self._pending.pop(filename).set_result(self.text if text is None else text)

    def fail(self, filename: str, error: Exception) -> None:
        self._pending.pop(filename).set_exception(error)

    def is_waiting(self, filename: str) -> bool:
        return filename in self._pending


async def settle() -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(5):
        await asyncio.sleep(0)


def make_source(name: str, tmp_path=None) -> SourceRef:
    path = (tmp_path / name) if tmp_path is not None else f"/nonexistent/{name}"
    return SourceRef(filename=name, file_path=str(path), media_type="audio/mpeg", size=3)


# --- Singleton reset ---
@pytest.fixture(autouse=True)
def fresh_singletons(tmp_path):
    JobQueue._instance = None
    TranscriptionManager._instance = None
    original_upload_dir = settings.upload_dir
    settings.upload_dir = tmp_path / "uploads"
    yield
    settings.upload_dir = original_upload_dir
    JobQueue._instance = None
    TranscriptionManager._instance = None


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest_asyncio.fixture
async def queue(fake_runner) -> AsyncGenerator[JobQueue, None]:
    q = JobQueue.get_instance()
    q.set_runner(fake_runner)
    await q.start_worker()
    yield q
    await q.stop_worker(wait_for_current=False)


# --- Client Setup ---
@pytest_asyncio.fixture
async def client(queue) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not run the lifespan; the queue fixture wires the runner
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test/api") as c:
        yield c
