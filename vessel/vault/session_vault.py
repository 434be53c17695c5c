"""
SessionVault — the synchronous API exposed to the UI process.

Provides:
- ``save_session(content, metadata)`` — encrypt and persist a new session
- ``load_session_list()`` — metadata of every session, newest first
- ``load_session_content(id)`` — decrypt one session
- ``delete_session(id)`` — remove a session (unknown ids are fine)
- ``has_vault_passphrase()`` / ``set_vault_passphrase(p)`` /
  ``verify_vault_passphrase(p)`` — the vault gate
- ``open(config)`` — factory wiring key, store and gate together

Cipher work never runs under the store lock: content is encrypted before the
row is written and decrypted after it is read.

Security Note:
    Never log plaintext or ciphertext values. Only log session ids.
"""
import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

import pydantic

from . import crypto
from .config import VaultConfig
from .exceptions import ValidationError
from .keys import KeyManager
from .models import SessionMeta, SessionMetadata, SessionRecord
from .passphrase import PassphraseGate, hasher_from_config
from .store import SessionStore

logger = logging.getLogger("vessel.vault")

MetadataInput = Union[SessionMetadata, Mapping[str, Any]]


class SessionVault:
    """Encrypted session storage gated by a vault passphrase.

    ``key`` is the device key obtained once at startup (see ``KeyManager``);
    it is held by reference and never re-read.
    """

    def __init__(
        self,
        store: SessionStore,
        key: bytes,
        gate: Optional[PassphraseGate] = None,
    ):
        self._store = store
        self._key = key
        self._gate = gate or PassphraseGate(store)

    @classmethod
    def open(
        cls,
        config: Optional[VaultConfig] = None,
        key_manager: Optional[KeyManager] = None,
    ) -> "SessionVault":
        """Build a vault from configuration.

        Args:
            config: Vault settings; read from the environment when omitted.
            key_manager: Source of the device key; defaults to the OS keyring
                entry named in ``config``.

        Raises:
            ConfigurationError: If the key or data directory is unavailable.
        """
        config = config or VaultConfig.from_env()
        key_manager = key_manager or KeyManager(
            service=config.keyring_service, account=config.keyring_account,
        )
        key = key_manager.get_or_create_key()
        store = SessionStore.open(config.data_dir, config.db_filename)
        gate = PassphraseGate(store, hasher_from_config(config))
        logger.info("Vault opened: %s", store.path)
        return cls(store, key, gate)

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> "SessionVault":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def save_session(self, content: str, metadata: MetadataInput) -> str:
        """Encrypt ``content`` and store it with ``metadata``.

        Returns:
            The id generated for the new session.

        Raises:
            ValidationError: If metadata is missing fields or out of range.
        """
        if not isinstance(metadata, SessionMetadata):
            try:
                metadata = SessionMetadata.model_validate(dict(metadata))
            except pydantic.ValidationError as err:
                raise ValidationError(f"Invalid session metadata: {err}") from err
        encrypted_content = crypto.encrypt_text(content, self._key)
        record = SessionRecord.create(encrypted_content, metadata)
        self._store.save(record)
        logger.info("Session saved: id=%s words=%d", record.id, record.word_count)
        return record.id

    def load_session_list(self) -> list[SessionMeta]:
        return self._store.list_meta()

    def load_session_content(self, session_id: str) -> str:
        """Return the decrypted content of a session.

        Raises:
            NotFoundError: If the session does not exist.
            AuthenticationFailure: If the stored envelope does not verify.
        """
        encrypted_content = self._store.load_content(session_id)
        return crypto.decrypt_text(encrypted_content, self._key)

    def delete_session(self, session_id: str) -> None:
        self._store.delete(session_id)

    # ------------------------------------------------------------------
    # Vault passphrase
    # ------------------------------------------------------------------

    def has_vault_passphrase(self) -> bool:
        return self._gate.has_passphrase()

    def set_vault_passphrase(self, passphrase: str) -> None:
        self._gate.set_passphrase(passphrase)

    def verify_vault_passphrase(self, passphrase: str) -> bool:
        return self._gate.verify_passphrase(passphrase)
