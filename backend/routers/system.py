from fastapi import APIRouter
from pydantic import BaseModel

from config import settings
from engine.transcription_manager import TranscriptionManager
from utils.exceptions import ProcessingError

router = APIRouter()

class ConfigUpdate(BaseModel):
    gemini_model: str

@router.get("/config")
async def get_config():
    """Get current configuration."""
    return {
        "gemini_model": TranscriptionManager.get_instance().model_name,
        "api_key_configured": bool(settings.gemini_api_key),
        "max_upload_size_mb": settings.max_upload_size_mb,
        "allowed_extensions": sorted(settings.allowed_extensions),
    }

@router.post("/config")
async def update_config(config: ConfigUpdate):
    """
    Switch the Gemini model used for the next transcriptions.
    """
    model_name = config.gemini_model.strip()
    if not model_name:
        raise ProcessingError("Model name must not be empty")

    TranscriptionManager.get_instance().reload_model(model_name)
    return {"status": "success", "message": f"Model updated to {model_name}"}
