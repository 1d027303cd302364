"""
Speech-to-text endpoint for the widget's voice input.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from mortgage_chat.api.deps import Services, get_services
from mortgage_chat.models import TranscriptionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["transcription"])


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe(
    audio: Optional[UploadFile] = File(default=None),
    services: Services = Depends(get_services),
):
    """
    Transcribe an uploaded recording.

    400 when no file is attached, 504 when the job never finishes,
    500 for any other transcription failure.
    """
    if audio is None:
        raise HTTPException(status_code=400, detail="No audio file uploaded")

    audio_bytes = await audio.read()
    if not audio_bytes:
        raise HTTPException(status_code=400, detail="No audio file uploaded")

    mime_type = audio.content_type or "audio/webm"
    logger.info(f"Transcription request: filename={audio.filename}, size={len(audio_bytes)}")

    text = await services.transcriber.transcribe(audio_bytes, mime_type)
    return TranscriptionResponse(text=text)
