"""
Turn Orchestrator - handles one inbound chat message end to end.

Flow:
load user → append user turn → FAQ check → (FAQ answer | window + completion)
→ append assistant turn → save users → log interaction → reply

Persistence is whole-document and non-transactional:
- The user turn is appended before anything can fail, and is kept (and saved)
  even when the completion call fails
- A persistence failure after a reply was generated still fails the request
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List

from pydantic import ValidationError

from mortgage_chat.errors import (
    ChatServiceError,
    CompletionError,
    CorruptDataError,
    UserNotFoundError,
)
from mortgage_chat.llm.base import CompletionProvider
from mortgage_chat.models import (
    FAQEntry,
    InteractionLogEntry,
    ReplySource,
    Role,
    Turn,
    UserRecord,
    utc_timestamp,
)
from mortgage_chat.orchestration.conversation_window import PersonaConfig, build_window
from mortgage_chat.orchestration.faq_matcher import match_faq
from mortgage_chat.state_machine import ChatState, ChatStateMachine
from mortgage_chat.storage.record_store import CollectionKind, RecordStore

logger = logging.getLogger(__name__)


@dataclass
class ChatOutcome:
    """Result of a successfully handled chat message."""
    reply: str
    source: ReplySource
    states: List[ChatState] = field(default_factory=list)


class TurnOrchestrator:
    """
    Coordinates the record store, FAQ matcher, window builder and
    completion provider for each chat request.

    All collaborators are injected; nothing here reads global config.
    """

    def __init__(
        self,
        store: RecordStore,
        provider: CompletionProvider,
        persona: PersonaConfig,
        serialize_writes: bool = False,
    ):
        self.store = store
        self.provider = provider
        self.persona = persona
        self.serialize_writes = serialize_writes

    async def handle_message(self, user_id: str, message: str) -> ChatOutcome:
        """
        Answer one chat message and persist the exchange.

        Args:
            user_id: Registered user id
            message: User's message text

        Returns:
            ChatOutcome with the reply and where it came from

        Raises:
            UserNotFoundError: no such user; nothing is written
            CorruptDataError: a collection could not be decoded
            CompletionError: provider failed; the user turn is still persisted
            PersistenceError: saving failed after the reply was produced
        """
        sm = ChatStateMachine(request_id=f"{user_id}:{uuid.uuid4().hex[:8]}")

        try:
            users = await self.store.load(CollectionKind.USERS)
            record = self._decode_user(users, user_id)
        except ChatServiceError as e:
            sm.fail(e.code)
            raise

        user_turn = Turn(role=Role.USER, content=message)
        record.conversation_history.append(user_turn)
        new_turns = [user_turn]
        sm.transition(ChatState.USER_LOADED, reason=f"history_turns={len(record.conversation_history)}")

        try:
            faqs = await self._load_faqs()
        except ChatServiceError as e:
            sm.fail(e.code)
            raise

        faq = match_faq(message, faqs)
        if faq is not None:
            sm.transition(ChatState.FAQ_SHORT_CIRCUIT, reason=f"faq_id={faq.id}")
            reply = faq.answer
            source = ReplySource.FAQ
        else:
            sm.transition(ChatState.MODEL_INVOKED, reason=self.provider.name)
            payload = build_window(record.conversation_history, self.persona, record.first_name)
            try:
                reply = await self.provider.complete(payload)
            except CompletionError as e:
                sm.fail(e.code)
                await self._persist_orphaned_turn(users, user_id, record, new_turns)
                raise
            source = ReplySource.MODEL

        assistant_turn = Turn(role=Role.ASSISTANT, content=reply)
        record.conversation_history.append(assistant_turn)
        new_turns.append(assistant_turn)

        entry = InteractionLogEntry(
            timestamp=utc_timestamp(),
            user_id=user_id,
            user_message=message,
            ai_reply=reply,
        )
        try:
            await self._save_user(users, user_id, record, new_turns)
            await self.store.append(CollectionKind.INTERACTIONS, entry.to_document())
        except ChatServiceError as e:
            logger.error(f"Reply generated for user {user_id} but persistence failed: {e.message}")
            sm.fail(e.code)
            raise

        sm.transition(ChatState.PERSISTED)
        sm.transition(ChatState.RESPONDED, reason=source.value)
        return ChatOutcome(reply=reply, source=source, states=sm.trail)

    def _decode_user(self, users: dict, user_id: str) -> UserRecord:
        raw = users.get(user_id)
        if raw is None:
            logger.warning(f"Chat for unknown user: {user_id}")
            raise UserNotFoundError("User not found")
        try:
            return UserRecord.model_validate(raw)
        except ValidationError as e:
            raise CorruptDataError(f"User record {user_id} is malformed: {e.error_count()} errors") from e

    async def _load_faqs(self) -> List[FAQEntry]:
        documents = await self.store.load(CollectionKind.FAQS)
        try:
            return [FAQEntry.model_validate(doc) for doc in documents]
        except ValidationError as e:
            raise CorruptDataError(f"FAQ list is malformed: {e.error_count()} errors") from e

    async def _save_user(
        self,
        users: dict,
        user_id: str,
        record: UserRecord,
        new_turns: List[Turn],
    ) -> None:
        """
        Write the user's updated history.

        Default: rewrite the mapping loaded at the start of the request
        (last writer wins). Serialized: re-read under the collection lock and
        append only this request's turns to the fresh record.
        """
        if not self.serialize_writes:
            users[user_id] = record.to_document()
            await self.store.save(CollectionKind.USERS, users)
            return

        appended = [turn.model_dump(mode="json") for turn in new_turns]

        def _merge(fresh: dict) -> None:
            current = fresh.get(user_id)
            if current is None:
                fresh[user_id] = record.to_document()
                return
            current.setdefault("conversationHistory", []).extend(appended)

        await self.store.update(CollectionKind.USERS, _merge)

    async def _persist_orphaned_turn(
        self,
        users: dict,
        user_id: str,
        record: UserRecord,
        new_turns: List[Turn],
    ) -> None:
        """Save the unanswered user turn; the completion error still propagates."""
        try:
            await self._save_user(users, user_id, record, new_turns)
        except ChatServiceError as e:
            logger.error(f"Failed to persist unanswered turn for user {user_id}: {e.message}")
        else:
            logger.warning(f"Completion failed; unanswered user turn kept for user {user_id}")
