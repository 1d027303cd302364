"""
Anthropic completion clients.

Two request shapes are supported:
- Text Completions (/v1/complete): one concatenated prompt with
  "Human:" / "Assistant:" markers and stop sequences
- Messages (/v1/messages): role-tagged message list plus a system field
"""

import logging
from typing import Any, Dict, List

from mortgage_chat.llm.base import CompletionProvider
from mortgage_chat.models import Role
from mortgage_chat.orchestration.conversation_window import PromptPayload

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
HUMAN_PREFIX = "Human:"
ASSISTANT_PREFIX = "Assistant:"


class _AnthropicProvider(CompletionProvider):

    def build_headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }


class AnthropicTextCompletionProvider(_AnthropicProvider):
    """Legacy Text Completions API with a single concatenated prompt."""

    name = "anthropic-text"

    @property
    def endpoint(self) -> str:
        return "/v1/complete"

    def render_prompt(self, payload: PromptPayload) -> str:
        """
        Flatten the payload into one prompt string.

        The system text comes first, then one line per turn, and the prompt
        ends on an open "Assistant:" marker for the model to continue.
        """
        prompt = f"{payload.system}\n\n"
        for turn in payload.turns:
            prefix = HUMAN_PREFIX if turn.role == Role.USER else ASSISTANT_PREFIX
            prompt += f"{prefix} {turn.content}\n"
        prompt += ASSISTANT_PREFIX
        return prompt

    def build_request_body(self, payload: PromptPayload) -> Dict[str, Any]:
        return {
            "model": self.model,
            "prompt": self.render_prompt(payload),
            "max_tokens_to_sample": self.max_tokens,
            "stop_sequences": [HUMAN_PREFIX, ASSISTANT_PREFIX],
        }

    def extract_reply(self, data: Dict[str, Any]) -> str:
        return data["completion"]


class AnthropicMessagesProvider(_AnthropicProvider):
    """Messages API with a separate system field."""

    name = "anthropic-messages"

    @property
    def endpoint(self) -> str:
        return "/v1/messages"

    def build_messages(self, payload: PromptPayload) -> List[Dict[str, str]]:
        """
        Role-tagged messages that start on a user turn and alternate roles.

        A window can open on an assistant turn, and an unanswered user turn
        left by a failed completion sits next to the following user turn.
        Leading assistant turns are dropped and consecutive same-role turns
        are joined with a blank line.
        """
        messages: List[Dict[str, str]] = []
        for turn in payload.turns:
            if not messages and turn.role != Role.USER:
                continue
            if messages and messages[-1]["role"] == turn.role.value:
                messages[-1]["content"] += f"\n\n{turn.content}"
                continue
            messages.append({"role": turn.role.value, "content": turn.content})
        return messages

    def build_request_body(self, payload: PromptPayload) -> Dict[str, Any]:
        messages = self.build_messages(payload)
        if len(messages) < len(payload.turns):
            logger.debug(f"Normalized {len(payload.turns)} turns into {len(messages)} messages")
        return {
            "model": self.model,
            "system": payload.system,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }

    def extract_reply(self, data: Dict[str, Any]) -> str:
        blocks = data["content"]
        texts = [block["text"] for block in blocks if block.get("type") == "text"]
        if not texts:
            raise KeyError("no text content blocks")
        return "".join(texts)
