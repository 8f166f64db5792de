"""DIDStore: SQLite tables for identifiers and their services.

The ``identifier.alias`` column carries a UNIQUE constraint. It is the
single arbiter for alias collisions: when two writers race on the same
alias the second INSERT fails and is reported as
:class:`~vc_agent.errors.AliasAlreadyExists`, so a duplicate is never
created regardless of what the caller checked beforehand.
"""
from __future__ import annotations

import datetime
import sqlite3

from vc_agent.did.document import ServiceEndpoint
from vc_agent.did.identifier import Identifier
from vc_agent.errors import AliasAlreadyExists, IdentifierNotFound, StorageError
from vc_agent.store.database import Database


class DIDStore:
    """Persist and query :class:`~vc_agent.did.identifier.Identifier` records.

    Parameters
    ----------
    database:
        A migrated :class:`~vc_agent.store.database.Database`.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, identifier: Identifier) -> None:
        """Insert a new identifier with its services.

        Raises
        ------
        AliasAlreadyExists
            If ``identifier.alias`` is already bound.
        StorageError
            For any other write failure, including a duplicate DID.
        """
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    "INSERT INTO identifier (did, provider, alias, controller_key_id, save_date) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        identifier.did,
                        identifier.provider,
                        identifier.alias,
                        identifier.controller_key_id,
                        identifier.created_at.isoformat(),
                    ),
                )
                for position, service in enumerate(identifier.services):
                    self._insert_service(conn, identifier.did, service, position)
        except sqlite3.IntegrityError as exc:
            if identifier.alias is not None and "identifier.alias" in str(exc):
                raise AliasAlreadyExists(identifier.alias) from exc
            raise StorageError(f"Cannot save identifier {identifier.did!r}: {exc}") from exc
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot save identifier {identifier.did!r}: {exc}") from exc

    def add_service(self, did: str, service: ServiceEndpoint) -> None:
        """Append *service* to the end of the identifier's service list.

        Raises
        ------
        IdentifierNotFound
            If *did* is not stored.
        StorageError
            If the service id already exists or the write fails.
        """
        try:
            with self._db.transaction() as conn:
                exists = conn.execute(
                    "SELECT 1 FROM identifier WHERE did = ?", (did,)
                ).fetchone()
                if exists is None:
                    raise IdentifierNotFound(f"No identifier with DID {did!r}.")
                row = conn.execute(
                    "SELECT COALESCE(MAX(position) + 1, 0) FROM service WHERE identifier_did = ?",
                    (did,),
                ).fetchone()
                self._insert_service(conn, did, service, int(row[0]))
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot add service {service.id!r}: {exc}") from exc

    @staticmethod
    def _insert_service(
        conn: sqlite3.Connection, did: str, service: ServiceEndpoint, position: int
    ) -> None:
        conn.execute(
            "INSERT INTO service (id, type, service_endpoint, description, identifier_did, position) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (service.id, service.type, service.endpoint, service.description, did, position),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(self) -> list[Identifier]:
        """Return all identifiers in insertion order."""
        rows = self._db.query("SELECT * FROM identifier ORDER BY rowid")
        return [self._hydrate(row) for row in rows]

    def get(self, did: str) -> Identifier:
        """Return the identifier for *did* (raises ``IdentifierNotFound``)."""
        rows = self._db.query("SELECT * FROM identifier WHERE did = ?", (did,))
        if not rows:
            raise IdentifierNotFound(f"No identifier with DID {did!r}.")
        return self._hydrate(rows[0])

    def get_by_alias(self, alias: str) -> Identifier:
        """Return the identifier bound to *alias* (raises ``IdentifierNotFound``)."""
        rows = self._db.query("SELECT * FROM identifier WHERE alias = ?", (alias,))
        if not rows:
            raise IdentifierNotFound(f"No identifier with alias {alias!r}.")
        return self._hydrate(rows[0])

    def _hydrate(self, row: sqlite3.Row) -> Identifier:
        service_rows = self._db.query(
            "SELECT * FROM service WHERE identifier_did = ? ORDER BY position",
            (row["did"],),
        )
        try:
            services = tuple(
                ServiceEndpoint(
                    id=s["id"],
                    type=s["type"],
                    endpoint=s["service_endpoint"],
                    description=s["description"],
                )
                for s in service_rows
            )
            created_at = datetime.datetime.fromisoformat(row["save_date"])
        except ValueError as exc:
            raise StorageError(f"Corrupt identifier record {row['did']!r}: {exc}") from exc
        return Identifier(
            did=row["did"],
            provider=row["provider"],
            controller_key_id=row["controller_key_id"],
            alias=row["alias"],
            services=services,
            created_at=created_at,
        )

    def __len__(self) -> int:
        rows = self._db.query("SELECT COUNT(*) FROM identifier")
        return int(rows[0][0])


__all__ = ["DIDStore"]
