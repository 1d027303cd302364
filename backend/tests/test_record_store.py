"""
Unit tests for RecordStore.

Covers empty defaults, corrupt content, full-document round trips and
the serialized read-modify-write path.
"""

import asyncio
import json

import pytest

from mortgage_chat.errors import CorruptDataError, PersistenceError
from mortgage_chat.storage.record_store import CollectionKind, RecordStore


class TestLoadDefaults:
    """Missing and empty files load as empty documents."""

    @pytest.mark.asyncio
    async def test_missing_users_file_is_empty_mapping(self, store):
        assert await store.load(CollectionKind.USERS) == {}

    @pytest.mark.asyncio
    async def test_missing_list_collections_are_empty_lists(self, store):
        assert await store.load(CollectionKind.INTERACTIONS) == []
        assert await store.load(CollectionKind.FAQS) == []

    @pytest.mark.asyncio
    async def test_empty_file_uses_default(self, store):
        store.data_dir.mkdir(parents=True)
        store.path_for(CollectionKind.USERS).write_text("")
        store.path_for(CollectionKind.FAQS).write_text("   \n")

        assert await store.load(CollectionKind.USERS) == {}
        assert await store.load(CollectionKind.FAQS) == []


class TestCorruptData:
    """Undecodable content is fatal for the request."""

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self, store):
        store.data_dir.mkdir(parents=True)
        store.path_for(CollectionKind.USERS).write_text("{not json")

        with pytest.raises(CorruptDataError):
            await store.load(CollectionKind.USERS)

    @pytest.mark.asyncio
    async def test_invalid_utf8_raises(self, store):
        store.data_dir.mkdir(parents=True)
        store.path_for(CollectionKind.USERS).write_bytes(b'{"a": "\xff\xfe"}')

        with pytest.raises(CorruptDataError):
            await store.load(CollectionKind.USERS)

    @pytest.mark.asyncio
    async def test_wrong_document_shape_raises(self, store):
        store.data_dir.mkdir(parents=True)
        store.path_for(CollectionKind.USERS).write_text("[]")
        store.path_for(CollectionKind.INTERACTIONS).write_text("{}")

        with pytest.raises(CorruptDataError):
            await store.load(CollectionKind.USERS)
        with pytest.raises(CorruptDataError):
            await store.load(CollectionKind.INTERACTIONS)


class TestSave:
    """Full-document overwrite semantics."""

    @pytest.mark.asyncio
    async def test_round_trip(self, store):
        users = {
            "1700000000000": {
                "firstName": "Ann",
                "phone": "555",
                "email": "a@x.com",
                "conversationHistory": [
                    {"role": "user", "content": "hi"},
                    {"role": "assistant", "content": "Hello **Ann**"},
                ],
            }
        }
        await store.save(CollectionKind.USERS, users)
        assert await store.load(CollectionKind.USERS) == users

    @pytest.mark.asyncio
    async def test_creates_missing_directories(self, tmp_path):
        store = RecordStore(tmp_path / "nested" / "deeper")
        await store.save(CollectionKind.FAQS, [{"id": "1"}])
        assert store.path_for(CollectionKind.FAQS).exists()

    @pytest.mark.asyncio
    async def test_output_is_pretty_printed(self, store):
        await store.save(CollectionKind.FAQS, [{"id": "1", "question": "q"}])
        text = store.path_for(CollectionKind.FAQS).read_text()
        assert text == json.dumps([{"id": "1", "question": "q"}], indent=2)

    @pytest.mark.asyncio
    async def test_save_replaces_whole_document(self, store):
        await store.save(CollectionKind.FAQS, [{"id": "1"}, {"id": "2"}])
        await store.save(CollectionKind.FAQS, [{"id": "3"}])
        assert await store.load(CollectionKind.FAQS) == [{"id": "3"}]

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = RecordStore(blocker / "data")

        with pytest.raises(PersistenceError):
            await store.save(CollectionKind.USERS, {})


class TestReadModifyWrite:
    """append() and update() helpers."""

    @pytest.mark.asyncio
    async def test_append(self, store):
        await store.append(CollectionKind.INTERACTIONS, {"n": 1})
        await store.append(CollectionKind.INTERACTIONS, {"n": 2})
        assert await store.load(CollectionKind.INTERACTIONS) == [{"n": 1}, {"n": 2}]

    @pytest.mark.asyncio
    async def test_update_returns_mutator_result(self, store):
        def _add(users):
            users["42"] = {"firstName": "Bo"}
            return "added"

        assert await store.update(CollectionKind.USERS, _add) == "added"
        assert await store.load(CollectionKind.USERS) == {"42": {"firstName": "Bo"}}

    @pytest.mark.asyncio
    async def test_update_skips_save_when_mutator_raises(self, store):
        await store.save(CollectionKind.FAQS, [{"id": "1"}])

        def _boom(documents):
            documents.clear()
            raise LookupError("nope")

        with pytest.raises(LookupError):
            await store.update(CollectionKind.FAQS, _boom)
        assert await store.load(CollectionKind.FAQS) == [{"id": "1"}]

    @pytest.mark.asyncio
    async def test_serialized_concurrent_appends_are_all_kept(self, serialized_store):
        await asyncio.gather(
            *(serialized_store.append(CollectionKind.INTERACTIONS, {"n": i}) for i in range(10))
        )
        entries = await serialized_store.load(CollectionKind.INTERACTIONS)
        assert sorted(e["n"] for e in entries) == list(range(10))
