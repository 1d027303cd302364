"""
Shared fixtures: a temp-dir record store, a scripted completion provider,
and a local aiohttp server for exercising the HTTP clients.
"""

from typing import Any, Dict, List, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from mortgage_chat.llm.base import CompletionProvider
from mortgage_chat.models import Role, Turn, UserRecord
from mortgage_chat.orchestration.conversation_window import PersonaConfig, PromptPayload
from mortgage_chat.orchestration.turn_orchestrator import TurnOrchestrator
from mortgage_chat.storage.record_store import CollectionKind, RecordStore


class FakeProvider(CompletionProvider):
    """Completion provider that returns a canned reply (or raises) without HTTP."""

    name = "fake"

    def __init__(self, reply: str = "Happy to help with your mortgage question."):
        super().__init__(api_key=None, model="fake-model", base_url="http://fake.invalid")
        self.reply = reply
        self.error: Optional[Exception] = None
        self.payloads: List[PromptPayload] = []

    @property
    def endpoint(self) -> str:
        return "/complete"

    def build_headers(self) -> Dict[str, str]:
        return {}

    def build_request_body(self, payload: PromptPayload) -> Dict[str, Any]:
        return {}

    def extract_reply(self, data: Dict[str, Any]) -> str:
        return data["reply"]

    @property
    def calls(self) -> int:
        return len(self.payloads)

    async def complete(self, payload: PromptPayload) -> str:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "data")


@pytest.fixture
def serialized_store(tmp_path):
    return RecordStore(tmp_path / "data", serialize_writes=True)


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def persona():
    return PersonaConfig()


@pytest.fixture
def orchestrator(store, fake_provider, persona):
    return TurnOrchestrator(store, fake_provider, persona)


@pytest.fixture
def seed_user(store):
    """Write a user record directly to the registry."""
    async def _seed(user_id: str = "1700000000000", first_name: str = "Ann", turns: int = 0) -> str:
        history = [
            Turn(role=Role.USER if i % 2 == 0 else Role.ASSISTANT, content=f"turn {i}")
            for i in range(turns)
        ]
        users = await store.load(CollectionKind.USERS)
        users[user_id] = UserRecord(
            first_name=first_name,
            phone="555",
            email="a@x.com",
            conversation_history=history,
        ).to_document()
        await store.save(CollectionKind.USERS, users)
        return user_id

    return _seed


@pytest.fixture
async def http_server():
    """Start aiohttp apps on a local port; yields a starter returning the base URL."""
    servers: List[TestServer] = []

    async def _start(app: web.Application) -> str:
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return str(server.make_url("")).rstrip("/")

    yield _start

    for server in servers:
        await server.close()
