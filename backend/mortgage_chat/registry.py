"""
User registry: registration plus the admin views over registered users.
"""

import csv
import io
import logging
import time
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from mortgage_chat.errors import CorruptDataError, UserNotFoundError
from mortgage_chat.models import Transcript, UserRecord, UserSummary
from mortgage_chat.storage.record_store import CollectionKind, RecordStore

logger = logging.getLogger(__name__)

CSV_HEADER = ["FullName", "Email", "Phone"]


class UserIdGenerator:
    """
    Millisecond-timestamp user ids.

    Ids increase in creation order. If the clock has not moved past the last
    id handed out, the next id is last + 1, so one process never repeats.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last = 0

    def next_id(self) -> str:
        candidate = int(self._clock() * 1000)
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return str(candidate)


class UserRegistry:
    """Registers users and exposes read-only admin views."""

    def __init__(self, store: RecordStore, id_generator: Optional[UserIdGenerator] = None):
        self.store = store
        self.id_generator = id_generator or UserIdGenerator()

    async def register(self, first_name: str, phone: str, email: str) -> Tuple[str, str]:
        """
        Create a user with an empty conversation history.

        Returns:
            (user_id, first_name)

        Raises:
            PersistenceError: the registry could not be written
        """
        user_id = self.id_generator.next_id()
        record = UserRecord(first_name=first_name, phone=phone, email=email)

        def _insert(users: dict) -> None:
            users[user_id] = record.to_document()

        await self.store.update(CollectionKind.USERS, _insert)
        logger.info(f"Registered user {user_id}")
        return user_id, first_name

    async def _records(self) -> List[Tuple[str, UserRecord]]:
        users = await self.store.load(CollectionKind.USERS)
        try:
            return [(user_id, UserRecord.model_validate(raw)) for user_id, raw in users.items()]
        except ValidationError as e:
            raise CorruptDataError(f"User registry is malformed: {e.error_count()} errors") from e

    async def list_users(self) -> List[UserSummary]:
        return [
            UserSummary(
                user_id=user_id,
                first_name=record.first_name,
                phone=record.phone,
                email=record.email,
                message_count=len(record.conversation_history),
            )
            for user_id, record in await self._records()
        ]

    async def get_transcript(self, user_id: str) -> Transcript:
        users = await self.store.load(CollectionKind.USERS)
        raw = users.get(user_id)
        if raw is None:
            raise UserNotFoundError("User not found")
        try:
            record = UserRecord.model_validate(raw)
        except ValidationError as e:
            raise CorruptDataError(f"User record {user_id} is malformed") from e
        return Transcript(
            user_id=user_id,
            first_name=record.first_name,
            conversation_history=record.conversation_history,
        )

    async def export_csv(self) -> str:
        """Users as CSV with a FullName,Email,Phone header, in registry order."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for _, record in await self._records():
            writer.writerow([record.first_name, record.email, record.phone])
        return buffer.getvalue()
