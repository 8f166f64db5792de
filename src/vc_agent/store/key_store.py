"""KeyStore and PrivateKeyStore: SQLite tables for key custody.

Public handles live in ``key``; encrypted private halves live in
``private_key``, keyed by the same id. The two are written together in a
single transaction by :meth:`KeyStore.save` so a key never exists without
its private half.

:class:`PrivateKeyStore` only ever sees ciphertext: encryption and
decryption happen in :class:`~vc_agent.kms.secret_box.SecretBox` under the
caller's control.
"""
from __future__ import annotations

import datetime
import sqlite3

from vc_agent.errors import KeyNotFound, StorageError
from vc_agent.keys.key import Key, KeyType
from vc_agent.store.database import Database


def _row_to_key(row: sqlite3.Row) -> Key:
    try:
        return Key(
            key_id=row["kid"],
            type=KeyType(row["type"]),
            public_key=bytes.fromhex(row["public_key_hex"]),
            kms=row["kms"],
            created_at=datetime.datetime.fromisoformat(row["created_at"]),
        )
    except ValueError as exc:
        raise StorageError(f"Corrupt key record {row['kid']!r}: {exc}") from exc


class KeyStore:
    """Persist and look up :class:`~vc_agent.keys.key.Key` records.

    Parameters
    ----------
    database:
        A migrated :class:`~vc_agent.store.database.Database`.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def save(self, key: Key, encrypted_private_key: str) -> None:
        """Write a key and its encrypted private half atomically.

        Raises
        ------
        StorageError
            If the write fails, including a duplicate key id.
        """
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    "INSERT INTO key (kid, kms, type, public_key_hex, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        key.key_id,
                        key.kms,
                        key.type.value,
                        key.public_key_hex,
                        key.created_at.isoformat(),
                    ),
                )
                conn.execute(
                    "INSERT INTO private_key (alias, type, private_key_hex) VALUES (?, ?, ?)",
                    (key.key_id, key.type.value, encrypted_private_key),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot save key {key.key_id!r}: {exc}") from exc

    def get(self, key_id: str) -> Key:
        """Return the key with *key_id*.

        Raises
        ------
        KeyNotFound
            If no such key exists.
        """
        rows = self._db.query("SELECT * FROM key WHERE kid = ?", (key_id,))
        if not rows:
            raise KeyNotFound(key_id)
        return _row_to_key(rows[0])

    def list_keys(self) -> list[Key]:
        """Return all keys in creation order."""
        rows = self._db.query("SELECT * FROM key ORDER BY rowid")
        return [_row_to_key(row) for row in rows]

    def __contains__(self, key_id: object) -> bool:
        rows = self._db.query("SELECT 1 FROM key WHERE kid = ?", (key_id,))
        return bool(rows)


class PrivateKeyStore:
    """Read encrypted private key blobs.

    Parameters
    ----------
    database:
        A migrated :class:`~vc_agent.store.database.Database`.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def get_encrypted(self, key_id: str) -> str:
        """Return the ciphertext blob stored for *key_id*.

        Raises
        ------
        KeyNotFound
            If no private half is stored for the key.
        """
        rows = self._db.query(
            "SELECT private_key_hex FROM private_key WHERE alias = ?", (key_id,)
        )
        if not rows:
            raise KeyNotFound(key_id)
        return str(rows[0]["private_key_hex"])


__all__ = ["KeyStore", "PrivateKeyStore"]
