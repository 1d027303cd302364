"""
Registration and chat endpoints used by the widget.
"""

import logging

from fastapi import APIRouter, Depends

from mortgage_chat.api.deps import Services, get_services
from mortgage_chat.models import ChatRequest, ChatResponse, RegisterRequest, RegisterResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/register", response_model=RegisterResponse)
async def register(req: RegisterRequest, services: Services = Depends(get_services)):
    """Create a user and return the id the widget sends with every message."""
    user_id, first_name = await services.registry.register(req.first_name, req.phone, req.email)
    return RegisterResponse(user_id=user_id, first_name=first_name)


@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, services: Services = Depends(get_services)):
    """
    Answer one chat message.

    Errors (404 unknown user, 502/504 upstream, 500 persistence) are raised
    as ChatServiceError and rendered by the app-level handler.
    """
    logger.info(f"Incoming chat: user_id={req.user_id} message_len={len(req.message)}")
    outcome = await services.orchestrator.handle_message(req.user_id, req.message)
    logger.info(f"Chat answered from {outcome.source.value}: {len(outcome.reply)} chars")
    return ChatResponse(reply=outcome.reply)
