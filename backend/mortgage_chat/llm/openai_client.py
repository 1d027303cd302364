"""
OpenAI Chat Completions client (non-streaming).
"""

import logging
from typing import Any, Dict, Optional

from mortgage_chat.llm.base import CompletionProvider
from mortgage_chat.orchestration.conversation_window import PromptPayload

logger = logging.getLogger(__name__)


class OpenAIChatProvider(CompletionProvider):
    """
    Chat Completions API.

    The persona preamble goes first as a system message, followed by the
    windowed turns.
    """

    name = "openai"

    def __init__(self, *args, organization_id: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.organization_id = organization_id

    @property
    def endpoint(self) -> str:
        return "/v1/chat/completions"

    def build_headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.organization_id:
            headers["OpenAI-Organization"] = self.organization_id
        return headers

    def build_request_body(self, payload: PromptPayload) -> Dict[str, Any]:
        messages = [{"role": "system", "content": payload.system}]
        messages.extend(
            {"role": turn.role.value, "content": turn.content}
            for turn in payload.turns
        )
        return {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }

    def extract_reply(self, data: Dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]
