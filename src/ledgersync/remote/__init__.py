"""Public remote store exports for ledgersync."""

from __future__ import annotations

from .base import RemoteDocument, RemoteStore
from .firestore_controller import FirestoreController
from .firestore_store import FirestoreRemoteStore

__all__ = ["RemoteStore", "RemoteDocument", "FirestoreController", "FirestoreRemoteStore"]
