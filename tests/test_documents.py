"""Tests for the encrypted SQLite document store."""

import sqlite3
import tempfile
from pathlib import Path

import pytest

from coinalert.db.documents import DocumentStoreError, EncryptedDocumentStore


@pytest.fixture
def db_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "nested" / "alerts.db"


class TestEncryptedDocumentStore:

    def test_schema_created(self, db_path):
        store = EncryptedDocumentStore(db_path, user_id="alice", secret="s3cret")
        for table in EncryptedDocumentStore.REQUIRED_TABLES:
            assert table in store.get_tables()

    @pytest.mark.anyio
    async def test_round_trip(self, db_path):
        store = EncryptedDocumentStore(db_path, user_id="alice", secret="s3cret")

        assert await store.get_file("price-alerts.json") is None
        await store.put_file("price-alerts.json", '[{"coin": "btc"}]')
        await store.put_file("price-alerts.json", "[]")

        assert await store.get_file("price-alerts.json") == "[]"

    @pytest.mark.anyio
    async def test_payload_is_encrypted_at_rest(self, db_path):
        store = EncryptedDocumentStore(db_path, user_id="alice", secret="s3cret")
        await store.put_file("doc", "plain-marker")

        conn = sqlite3.connect(db_path)
        try:
            (payload,) = conn.execute("SELECT payload FROM documents").fetchone()
        finally:
            conn.close()
        assert b"plain-marker" not in bytes(payload)

    @pytest.mark.anyio
    async def test_wrong_secret_fails_to_decrypt(self, db_path):
        await EncryptedDocumentStore(db_path, "alice", "right").put_file("doc", "x")

        with pytest.raises(DocumentStoreError):
            await EncryptedDocumentStore(db_path, "alice", "wrong").get_file("doc")

    @pytest.mark.anyio
    async def test_documents_are_scoped_per_user(self, db_path):
        await EncryptedDocumentStore(db_path, "alice", "k").put_file("doc", "alice's")

        assert await EncryptedDocumentStore(db_path, "bob", "k").get_file("doc") is None

    @pytest.mark.parametrize("user_id,secret", [("", "k"), ("alice", "")])
    def test_identity_required(self, db_path, user_id, secret):
        with pytest.raises(ValueError):
            EncryptedDocumentStore(db_path, user_id, secret)
