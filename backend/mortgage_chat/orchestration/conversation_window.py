"""
Conversation window for the completion call.

Takes the stored history (which is never modified here), keeps only the most
recent turns and pairs them with the persona preamble.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from mortgage_chat.models import Turn


DEFAULT_PERSONA_TEMPLATE = (
    "You are a knowledgeable mortgage assistant for Secure Mortgage, providing expert "
    "information about mortgages, home loans, and related financial services. Be "
    "professional, friendly, and format your responses in Markdown. The user's name is "
    "{user_name}. Use previous interactions to personalize your responses. Prioritize "
    "security, confidentiality, and accuracy in all discussions."
)

DEFAULT_WINDOW_SIZE = 15


@dataclass(frozen=True)
class PersonaConfig:
    """
    Static persona rules, built once at startup.

    template must contain a {user_name} placeholder.
    """
    template: str = DEFAULT_PERSONA_TEMPLATE
    window_size: int = DEFAULT_WINDOW_SIZE

    def render(self, user_name: str) -> str:
        return self.template.format(user_name=user_name)


@dataclass(frozen=True)
class PromptPayload:
    """Provider-neutral prompt: system preamble plus the windowed turns."""
    system: str
    turns: List[Turn] = field(default_factory=list)


def build_window(history: Sequence[Turn], persona: PersonaConfig, user_name: str) -> PromptPayload:
    """
    Build the prompt payload for one completion call.

    Args:
        history: Full conversation history, oldest first
        persona: Persona template and window size
        user_name: Display name substituted into the preamble

    Returns:
        PromptPayload with the last persona.window_size turns in original order
    """
    window = list(history[-persona.window_size:]) if persona.window_size > 0 else []
    return PromptPayload(system=persona.render(user_name), turns=window)
