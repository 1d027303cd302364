"""
FAQ collection management for the admin console.
"""

import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError

from mortgage_chat.errors import CorruptDataError, FAQNotFoundError
from mortgage_chat.models import FAQEntry, utc_timestamp
from mortgage_chat.storage.record_store import CollectionKind, RecordStore

logger = logging.getLogger(__name__)


def _require_objects(documents: list) -> None:
    if not all(isinstance(doc, dict) for doc in documents):
        raise CorruptDataError("FAQ list is malformed: entries must be objects")


class FAQService:
    """CRUD over the FAQ list. Collection order is preserved (it decides match priority)."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def list(self) -> List[FAQEntry]:
        documents = await self.store.load(CollectionKind.FAQS)
        try:
            return [FAQEntry.model_validate(doc) for doc in documents]
        except ValidationError as e:
            raise CorruptDataError(f"FAQ list is malformed: {e.error_count()} errors") from e

    async def create(self, question: str, answer: str) -> FAQEntry:
        now = utc_timestamp()
        faq = FAQEntry(
            id=uuid.uuid4().hex,
            question=question,
            answer=answer,
            created_at=now,
            updated_at=now,
        )
        await self.store.append(CollectionKind.FAQS, faq.to_document())
        logger.info(f"Created FAQ {faq.id}")
        return faq

    async def update(
        self,
        faq_id: str,
        question: Optional[str] = None,
        answer: Optional[str] = None,
    ) -> FAQEntry:
        def _apply(documents: list) -> dict:
            _require_objects(documents)
            for doc in documents:
                if doc.get("id") == faq_id:
                    if question is not None:
                        doc["question"] = question
                    if answer is not None:
                        doc["answer"] = answer
                    doc["updatedAt"] = utc_timestamp()
                    return doc
            raise FAQNotFoundError(f"FAQ {faq_id} not found")

        updated = await self.store.update(CollectionKind.FAQS, _apply)
        logger.info(f"Updated FAQ {faq_id}")
        try:
            return FAQEntry.model_validate(updated)
        except ValidationError as e:
            raise CorruptDataError(f"FAQ {faq_id} is malformed: {e.error_count()} errors") from e

    async def delete(self, faq_id: str) -> None:
        def _remove(documents: list) -> None:
            _require_objects(documents)
            for index, doc in enumerate(documents):
                if doc.get("id") == faq_id:
                    del documents[index]
                    return
            raise FAQNotFoundError(f"FAQ {faq_id} not found")

        await self.store.update(CollectionKind.FAQS, _remove)
        logger.info(f"Deleted FAQ {faq_id}")
