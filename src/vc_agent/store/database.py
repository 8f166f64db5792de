"""Database: SQLite connection shared by the key and DID stores.

The schema is versioned with ``PRAGMA user_version``. :meth:`Database.migrate`
applies every pending migration in order and must be called once at startup,
before any store is used. Each migration runs in its own transaction.

The connection is opened with ``check_same_thread=False`` and every access
goes through a single re-entrant lock, so one :class:`Database` can be
handed to components serving concurrent requests.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from vc_agent.errors import StorageError

logger = logging.getLogger(__name__)

# Ordered schema migrations. Never edit an entry once released; append.
MIGRATIONS: list[str] = [
    # 1: initial schema
    """
    CREATE TABLE key (
        kid TEXT PRIMARY KEY,
        kms TEXT NOT NULL,
        type TEXT NOT NULL,
        public_key_hex TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    CREATE TABLE private_key (
        alias TEXT PRIMARY KEY REFERENCES key(kid) ON DELETE CASCADE,
        type TEXT NOT NULL,
        private_key_hex TEXT NOT NULL
    );
    CREATE TABLE identifier (
        did TEXT PRIMARY KEY,
        provider TEXT NOT NULL,
        alias TEXT UNIQUE,
        controller_key_id TEXT NOT NULL REFERENCES key(kid),
        save_date TEXT NOT NULL
    );
    CREATE TABLE service (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        service_endpoint TEXT NOT NULL,
        description TEXT,
        identifier_did TEXT NOT NULL REFERENCES identifier(did) ON DELETE CASCADE,
        position INTEGER NOT NULL
    );
    """,
    # 2: lookup index for ordered service listing
    """
    CREATE INDEX service_identifier_position
        ON service (identifier_did, position);
    """,
]


class Database:
    """A migrated SQLite database guarded by a lock.

    Parameters
    ----------
    path:
        Database file. ``":memory:"`` is accepted for throwaway stores.

    Example
    -------
    ::

        db = Database(Path("database.sqlite"))
        db.migrate()
        with db.transaction() as conn:
            conn.execute("SELECT 1")
    """

    def __init__(self, path: Path | str) -> None:
        self._path = str(path)
        self._lock = threading.RLock()
        try:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self._path, check_same_thread=False, isolation_level=None
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys=ON")
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot open database {self._path!r}: {exc}") from exc

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    @property
    def schema_version(self) -> int:
        """Return the number of migrations applied so far."""
        with self._lock:
            try:
                row = self._conn.execute("PRAGMA user_version").fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot read schema version: {exc}") from exc
        return int(row[0])

    def migrate(self) -> int:
        """Apply all pending migrations.

        Returns
        -------
        int
            The number of migrations applied by this call.

        Raises
        ------
        StorageError
            If a migration fails; the failing migration is rolled back.
        """
        applied = 0
        with self._lock:
            current = self.schema_version
            if current > len(MIGRATIONS):
                raise StorageError(
                    f"Database schema version {current} is newer than this "
                    f"release supports ({len(MIGRATIONS)})."
                )
            for version, script in enumerate(MIGRATIONS[current:], start=current + 1):
                statements = [s.strip() for s in script.split(";") if s.strip()]
                try:
                    self._conn.execute("BEGIN")
                    for statement in statements:
                        self._conn.execute(statement)
                    self._conn.execute(f"PRAGMA user_version = {version}")
                    self._conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    self._conn.execute("ROLLBACK")
                    raise StorageError(f"Migration {version} failed: {exc}") from exc
                logger.info("Applied database migration %d to %s", version, self._path)
                applied += 1
        return applied

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection inside an exclusive transaction.

        Commits on success and rolls back on any exception. ``sqlite3``
        errors other than constraint violations are re-raised as
        :class:`StorageError`; :class:`sqlite3.IntegrityError` is passed
        through so the stores can translate it into domain errors.
        """
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot start transaction: {exc}") from exc
            try:
                yield self._conn
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                try:
                    self._conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    raise StorageError(f"Commit failed: {exc}") from exc

    def query(self, sql: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        """Run a read-only query and return all rows."""
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise StorageError(f"Query failed: {exc}") from exc

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()


__all__ = ["Database", "MIGRATIONS"]
