"""
Service container and FastAPI dependencies.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request

from mortgage_chat.config import Settings
from mortgage_chat.errors import UnauthorizedError
from mortgage_chat.faqs import FAQService
from mortgage_chat.llm.base import CompletionProvider
from mortgage_chat.orchestration.turn_orchestrator import TurnOrchestrator
from mortgage_chat.registry import UserRegistry
from mortgage_chat.storage.record_store import RecordStore
from mortgage_chat.stt.transcriber import Transcriber

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the routes need, built once at startup."""
    settings: Settings
    store: RecordStore
    provider: CompletionProvider
    orchestrator: TurnOrchestrator
    registry: UserRegistry
    faqs: FAQService
    transcriber: Transcriber


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_admin(
    request: Request,
    x_admin_token: Optional[str] = Header(default=None),
) -> None:
    """Reject admin requests without the configured X-Admin-Token."""
    expected = get_services(request).settings.admin_token
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        logger.warning(f"Rejected admin request to {request.url.path}")
        raise UnauthorizedError("Unauthorized")
