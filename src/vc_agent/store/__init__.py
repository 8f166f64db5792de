"""SQLite persistence for keys and identifiers."""
from __future__ import annotations

from vc_agent.store.database import Database
from vc_agent.store.did_store import DIDStore
from vc_agent.store.key_store import KeyStore, PrivateKeyStore

__all__ = ["DIDStore", "Database", "KeyStore", "PrivateKeyStore"]
