"""
Unit tests for the conversation window builder.
"""

from mortgage_chat.models import Role, Turn
from mortgage_chat.orchestration.conversation_window import (
    PersonaConfig,
    build_window,
)


def _history(n: int):
    return [
        Turn(role=Role.USER if i % 2 == 0 else Role.ASSISTANT, content=f"turn {i}")
        for i in range(n)
    ]


class TestBuildWindow:

    def test_keeps_last_fifteen_of_twenty(self):
        history = _history(20)
        payload = build_window(history, PersonaConfig(), "Ann")

        assert len(payload.turns) == 15
        assert payload.turns == history[-15:]
        assert payload.turns[0].content == "turn 5"
        assert payload.turns[-1].content == "turn 19"

    def test_short_history_is_kept_whole(self):
        history = _history(3)
        payload = build_window(history, PersonaConfig(), "Ann")
        assert payload.turns == history

    def test_history_is_not_modified(self):
        history = _history(20)
        build_window(history, PersonaConfig(), "Ann")
        assert len(history) == 20

    def test_roles_preserved(self):
        payload = build_window(_history(4), PersonaConfig(), "Ann")
        assert [t.role for t in payload.turns] == [
            Role.USER, Role.ASSISTANT, Role.USER, Role.ASSISTANT
        ]

    def test_system_preamble_names_user(self):
        payload = build_window(_history(1), PersonaConfig(), "Ann")
        assert "The user's name is Ann." in payload.system
        assert "Markdown" in payload.system

    def test_preamble_is_not_part_of_turns(self):
        payload = build_window([], PersonaConfig(), "Ann")
        assert payload.turns == []
        assert payload.system

    def test_custom_window_size_and_template(self):
        persona = PersonaConfig(template="Hi {user_name}", window_size=2)
        payload = build_window(_history(5), persona, "Bo")
        assert payload.system == "Hi Bo"
        assert [t.content for t in payload.turns] == ["turn 3", "turn 4"]
