import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from config import settings
from engine.transcription_manager import TranscriptionManager, SUBTITLE_PROMPT
from services.file_service import FileService
from services.transcription_service import TranscriptionService
from utils.exceptions import ProcessingError
from tests.conftest import SAMPLE_VTT, make_source


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", "test-key")


@pytest.fixture
def mock_client():
    with patch("engine.transcription_manager.genai.Client") as client_cls:
        client = client_cls.return_value
        client.aio.models.generate_content = AsyncMock(
            return_value=MagicMock(text="```vtt\n" + SAMPLE_VTT + "\n```")
        )
        yield client_cls


# --- TranscriptionManager Tests ---

@pytest.mark.asyncio
async def test_transcribe_returns_clean_vtt(api_key, mock_client):
    manager = TranscriptionManager.get_instance()

    result = await manager.transcribe(b"audio-bytes", "audio/mpeg")

    assert result == SAMPLE_VTT.strip()
    mock_client.assert_called_once_with(api_key="test-key")

    call = mock_client.return_value.aio.models.generate_content.await_args
    assert call.kwargs["model"] == settings.gemini_model
    assert call.kwargs["contents"][1] == SUBTITLE_PROMPT


@pytest.mark.asyncio
async def test_client_is_created_once(api_key, mock_client):
    manager = TranscriptionManager.get_instance()

    await manager.transcribe(b"one", "audio/mpeg")
    await manager.transcribe(b"two", "audio/mpeg")

    mock_client.assert_called_once()


@pytest.mark.asyncio
async def test_missing_api_key(monkeypatch, mock_client):
    monkeypatch.setattr(settings, "gemini_api_key", "")

    with pytest.raises(ProcessingError, match="API Key is missing"):
        await TranscriptionManager.get_instance().transcribe(b"x", "audio/mpeg")
    mock_client.assert_not_called()


@pytest.mark.asyncio
async def test_empty_model_response(api_key, mock_client):
    mock_client.return_value.aio.models.generate_content.return_value = MagicMock(text=None)

    with pytest.raises(ProcessingError, match="No text generated"):
        await TranscriptionManager.get_instance().transcribe(b"x", "audio/mpeg")


@pytest.mark.asyncio
async def test_api_error_propagates(api_key, mock_client):
    mock_client.return_value.aio.models.generate_content.side_effect = RuntimeError("429 RESOURCE_EXHAUSTED")

    with pytest.raises(RuntimeError, match="RESOURCE_EXHAUSTED"):
        await TranscriptionManager.get_instance().transcribe(b"x", "audio/mpeg")


def test_reload_same_model_is_noop(monkeypatch):
    monkeypatch.setattr(settings, "gemini_model", "gemini-2.5-flash")
    manager = TranscriptionManager.get_instance()

    manager.reload_model("gemini-2.5-flash")

    assert manager.model_name == "gemini-2.5-flash"


def test_reload_new_model(monkeypatch):
    monkeypatch.setattr(settings, "gemini_model", "gemini-2.5-flash")
    manager = TranscriptionManager.get_instance()

    manager.reload_model("gemini-2.5-pro")

    assert manager.model_name == "gemini-2.5-pro"
    assert settings.gemini_model == "gemini-2.5-pro"


# --- TranscriptionService Tests ---

@pytest.mark.asyncio
async def test_service_reads_source_and_transcribes(tmp_path):
    media = tmp_path / "clip.mp3"
    media.write_bytes(b"fake-audio")
    manager = MagicMock()
    manager.transcribe = AsyncMock(return_value=SAMPLE_VTT)

    service = TranscriptionService(file_service=FileService(), manager=manager)
    result = await service.run(make_source("clip.mp3", tmp_path))

    assert result == SAMPLE_VTT
    manager.transcribe.assert_awaited_once_with(b"fake-audio", "audio/mpeg")


@pytest.mark.asyncio
async def test_service_unreadable_source(tmp_path):
    manager = MagicMock()
    manager.transcribe = AsyncMock()

    service = TranscriptionService(file_service=FileService(), manager=manager)
    with pytest.raises(ProcessingError, match="Failed to read file 'gone.mp3'"):
        await service.run(make_source("gone.mp3", tmp_path))

    manager.transcribe.assert_not_awaited()
