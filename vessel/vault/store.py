"""
SessionStore — SQLite persistence for encrypted sessions and settings.

Two tables:
- ``sessions``: one immutable row per saved session (content encrypted)
- ``settings``: key/value strings, currently ``vault_passphrase_hash``

A single connection is shared by all callers and guarded by one lock; every
operation holds it for its whole duration, so storage access is serialized.

Security Note:
    Rows hold ciphertext only. Never log ``encrypted_content`` or setting
    values, only session ids and setting keys.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from .config import DEFAULT_DB_FILENAME
from .exceptions import (
    ConfigurationError,
    LockError,
    NotFoundError,
    StorageError,
    UniqueConstraintViolation,
    ValidationError,
    VaultError,
)
from .models import SessionMeta, SessionRecord

logger = logging.getLogger("vessel.vault")

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    id                TEXT PRIMARY KEY,
    encrypted_content TEXT NOT NULL,
    average_vibe      TEXT NOT NULL,
    dominant_state    TEXT NOT NULL,
    duration_ms       INTEGER NOT NULL,
    word_count        INTEGER NOT NULL,
    created_at        TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS settings (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_INSERT_SESSION = """
INSERT INTO sessions (id, encrypted_content, average_vibe, dominant_state,
                      duration_ms, word_count, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_META = """
SELECT id, average_vibe, dominant_state, duration_ms, word_count, created_at
FROM sessions
ORDER BY created_at DESC
"""

_SELECT_CONTENT = "SELECT encrypted_content FROM sessions WHERE id = ?"

_DELETE_SESSION = "DELETE FROM sessions WHERE id = ?"

_COUNT_SESSIONS = "SELECT COUNT(*) FROM sessions"

_SELECT_SETTING = "SELECT value FROM settings WHERE key = ?"

_UPSERT_SETTING = """
INSERT INTO settings (key, value) VALUES (?, ?)
ON CONFLICT (key) DO UPDATE SET value = excluded.value
"""

_SWAP_SETTING = "UPDATE settings SET value = ? WHERE key = ? AND value = ?"


class ConnectionGuard:
    """Owns the shared connection and the lock serializing access to it.

    Parameters sqlite3 cannot bind (lone surrogates, oversized integers)
    surface as ``ValidationError`` and leave the guard usable. Any other
    unexpected exception escaping while the lock is held poisons the
    guard: the connection may be mid-statement, so every later ``hold()``
    raises ``LockError`` instead of handing it out again.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self._lock = threading.Lock()
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @contextmanager
    def hold(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._poisoned:
                raise LockError()
            try:
                yield self._conn
            except (sqlite3.Error, VaultError):
                raise
            except (UnicodeEncodeError, OverflowError) as err:
                raise ValidationError(f"Unbindable parameter: {err}") from err
            except BaseException:
                self._poisoned = True
                logger.error("Store lock poisoned by an unexpected failure")
                raise

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class SessionStore:
    """Relational persistence for session records and settings."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        try:
            conn = sqlite3.connect(str(self._path), check_same_thread=False)
        except sqlite3.Error as err:
            raise ConfigurationError(
                f"Failed to open database {self._path}: {err}"
            ) from err
        try:
            conn.executescript(_SCHEMA)
            conn.commit()
        except sqlite3.Error as err:
            conn.close()
            raise StorageError(f"Migration failed: {err}") from err
        conn.row_factory = sqlite3.Row
        self._guard = ConnectionGuard(conn)
        logger.debug("Session store ready: %s", self._path)

    @classmethod
    def open(
        cls, data_dir: Union[str, Path], filename: str = DEFAULT_DB_FILENAME
    ) -> "SessionStore":
        """Create ``data_dir`` if needed and open the store inside it.

        Raises:
            ConfigurationError: If the directory cannot be created.
        """
        data_dir = Path(data_dir)
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise ConfigurationError(
                f"Failed to create data dir {data_dir}: {err}"
            ) from err
        return cls(data_dir / filename)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def guard(self) -> ConnectionGuard:
        return self._guard

    def close(self) -> None:
        self._guard.close()

    def __enter__(self) -> "SessionStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def save(self, record: SessionRecord) -> None:
        """Insert a new session row.

        Raises:
            UniqueConstraintViolation: If ``record.id`` already exists.
        """
        params = (
            record.id,
            record.encrypted_content,
            record.average_vibe,
            record.dominant_state,
            record.duration_ms,
            record.word_count,
            record.created_at,
        )
        with self._guard.hold() as conn:
            try:
                with conn:
                    conn.execute(_INSERT_SESSION, params)
            except sqlite3.IntegrityError as err:
                raise UniqueConstraintViolation(record.id) from err
            except sqlite3.Error as err:
                raise StorageError(f"Insert failed: {err}") from err
        logger.debug("Session saved: id=%s", record.id)

    def list_meta(self) -> list[SessionMeta]:
        """Return all sessions without content, most recent first."""
        with self._guard.hold() as conn:
            try:
                rows = conn.execute(_SELECT_META).fetchall()
            except sqlite3.Error as err:
                raise StorageError(f"Query failed: {err}") from err
        return [SessionMeta(**dict(row)) for row in rows]

    def load_content(self, session_id: str) -> str:
        """Return the encrypted content of a session.

        Raises:
            NotFoundError: If no session has this id.
        """
        with self._guard.hold() as conn:
            try:
                row = conn.execute(_SELECT_CONTENT, (session_id,)).fetchone()
            except sqlite3.Error as err:
                raise StorageError(f"Query failed: {err}") from err
        if row is None:
            raise NotFoundError(session_id)
        return row["encrypted_content"]

    def delete(self, session_id: str) -> None:
        """Delete a session; an unknown id is not an error."""
        with self._guard.hold() as conn:
            try:
                with conn:
                    cursor = conn.execute(_DELETE_SESSION, (session_id,))
            except sqlite3.Error as err:
                raise StorageError(f"Delete failed: {err}") from err
        logger.debug(
            "Session delete: id=%s removed=%d", session_id, cursor.rowcount
        )

    def count(self) -> int:
        with self._guard.hold() as conn:
            try:
                return conn.execute(_COUNT_SESSIONS).fetchone()[0]
            except sqlite3.Error as err:
                raise StorageError(f"Query failed: {err}") from err

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_setting(self, key: str) -> Optional[str]:
        with self._guard.hold() as conn:
            try:
                row = conn.execute(_SELECT_SETTING, (key,)).fetchone()
            except sqlite3.Error as err:
                raise StorageError(f"Setting read error: {err}") from err
        return None if row is None else row["value"]

    def set_setting(self, key: str, value: str) -> None:
        with self._guard.hold() as conn:
            try:
                with conn:
                    conn.execute(_UPSERT_SETTING, (key, value))
            except sqlite3.Error as err:
                raise StorageError(f"Setting write error: {err}") from err
        logger.debug("Setting written: key=%s", key)

    def compare_and_set_setting(self, key: str, expected: str, value: str) -> bool:
        """Replace a setting only if it still holds ``expected``.

        Returns:
            True if the value was replaced.
        """
        with self._guard.hold() as conn:
            try:
                with conn:
                    cursor = conn.execute(_SWAP_SETTING, (value, key, expected))
            except sqlite3.Error as err:
                raise StorageError(f"Setting write error: {err}") from err
        return cursor.rowcount == 1
