"""Whole-document storage for CoinAlert.

The alert core only needs two operations from its store: read a whole
named document and write a whole named document. Each either succeeds
or fails as a unit.
"""

import asyncio
import base64
import hashlib
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class DocumentStoreError(Exception):
    """Raised when a document cannot be read or written."""


class DocumentStore(ABC):
    """Abstract per-user document store.

    Implementations are scoped to a single authenticated user; document
    names are only unique within that scope.
    """

    @abstractmethod
    async def get_file(self, name: str) -> Optional[str]:
        """Read a whole document.

        Args:
            name: Document name.

        Returns:
            Decrypted document text, or None if no such document exists.

        Raises:
            DocumentStoreError: If the document cannot be read or decrypted.
        """
        pass

    @abstractmethod
    async def put_file(self, name: str, content: str) -> None:
        """Replace a whole document.

        Args:
            name: Document name.
            content: Full document text.

        Raises:
            DocumentStoreError: If the write fails. Nothing is written.
        """
        pass


def derive_key(secret: str) -> bytes:
    """Derive a Fernet key from a user secret."""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class EncryptedDocumentStore(DocumentStore):
    """SQLite-backed document store with Fernet-encrypted payloads."""

    REQUIRED_TABLES = ["documents"]

    def __init__(self, db_path: Path, user_id: str, secret: str):
        """Initialize the document store.

        Args:
            db_path: Path to the SQLite database file.
            user_id: Identity of the authenticated user owning the documents.
            secret: User secret the encryption key is derived from.
        """
        if not user_id:
            raise ValueError("user_id is required")
        if not secret:
            raise ValueError("secret is required")

        self.db_path = Path(db_path)
        self.user_id = user_id
        self._fernet = Fernet(derive_key(secret))
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    owner TEXT NOT NULL,
                    name TEXT NOT NULL,
                    payload BLOB NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (owner, name)
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Sync primitives ====================

    def _read(self, name: str) -> Optional[bytes]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT payload FROM documents WHERE owner = ? AND name = ?",
                (self.user_id, name),
            )
            row = cursor.fetchone()
            return bytes(row["payload"]) if row else None
        finally:
            conn.close()

    def _write(self, name: str, payload: bytes) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO documents (owner, name, payload, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(owner, name) DO UPDATE SET
                        payload = excluded.payload,
                        updated_at = excluded.updated_at
                    """,
                    (
                        self.user_id,
                        name,
                        payload,
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
        finally:
            conn.close()

    # ==================== DocumentStore ====================

    async def get_file(self, name: str) -> Optional[str]:
        try:
            payload = await asyncio.to_thread(self._read, name)
        except sqlite3.Error as e:
            raise DocumentStoreError(f"Failed to read {name}: {e}") from e

        if payload is None:
            return None

        try:
            return self._fernet.decrypt(payload).decode("utf-8")
        except InvalidToken as e:
            raise DocumentStoreError(f"Failed to decrypt {name}") from e

    async def put_file(self, name: str, content: str) -> None:
        payload = self._fernet.encrypt(content.encode("utf-8"))
        try:
            await asyncio.to_thread(self._write, name, payload)
        except sqlite3.Error as e:
            raise DocumentStoreError(f"Failed to write {name}: {e}") from e
        logger.debug("Wrote %s (%d bytes) for %s", name, len(payload), self.user_id)
