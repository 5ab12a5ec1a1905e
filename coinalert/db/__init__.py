"""Persistence backends for CoinAlert."""

from coinalert.db.documents import (
    DocumentStore,
    DocumentStoreError,
    EncryptedDocumentStore,
)

__all__ = ["DocumentStore", "DocumentStoreError", "EncryptedDocumentStore"]
