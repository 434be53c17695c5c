"""
PassphraseGate — vault passphrase hashing, verification and legacy migration.

Stored hashes come in two shapes:
- Current: Argon2id PHC string (``$argon2id$v=19$m=...``), salted, self-describing
- Legacy: anything else, e.g. an unsalted SHA-256 hex digest

A legacy hash is never verified. The first verification attempt clears it
and asks the caller for a new passphrase.

Security Note:
    Never log passphrases or hashes.
"""
import logging
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import (
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)

from .config import VaultConfig
from .exceptions import NoPassphraseSet, PassphraseResetRequired, ValidationError
from .store import SessionStore

logger = logging.getLogger("vessel.vault")

PASSPHRASE_SETTING = "vault_passphrase_hash"
CURRENT_SCHEME_MARKER = "$argon2"


def is_current_hash(stored_hash: str) -> bool:
    return stored_hash.startswith(CURRENT_SCHEME_MARKER)


def encode_passphrase(passphrase: str) -> bytes:
    """Return the UTF-8 bytes hashed for ``passphrase``.

    Raises:
        ValidationError: If the text cannot be encoded (lone surrogates).
    """
    try:
        return passphrase.encode("utf-8")
    except UnicodeEncodeError as err:
        raise ValidationError(f"UTF-8 error: {err}") from err


def hasher_from_config(config: VaultConfig) -> PasswordHasher:
    return PasswordHasher(
        time_cost=config.argon2_time_cost,
        memory_cost=config.argon2_memory_cost,
        parallelism=config.argon2_parallelism,
    )


class PassphraseGate:
    """Checks the vault passphrase stored in the ``settings`` table."""

    def __init__(self, store: SessionStore, hasher: Optional[PasswordHasher] = None):
        self._store = store
        self._hasher = hasher or PasswordHasher()

    def _stored_hash(self) -> Optional[str]:
        value = self._store.get_setting(PASSPHRASE_SETTING)
        return value or None

    def has_passphrase(self) -> bool:
        return self._stored_hash() is not None

    def set_passphrase(self, passphrase: str) -> None:
        """Hash with a fresh salt and store, replacing any previous hash."""
        stored_hash = self._hasher.hash(encode_passphrase(passphrase))
        self._store.set_setting(PASSPHRASE_SETTING, stored_hash)
        logger.info("Vault passphrase set")

    def verify_passphrase(self, passphrase: str) -> bool:
        """Check ``passphrase`` against the stored hash.

        Returns:
            True on match, False on mismatch.

        Raises:
            NoPassphraseSet: If no hash is stored. An empty stored value
                (left behind by a legacy reset) counts as no hash, so it is
                not reported as a second reset.
            PassphraseResetRequired: If a legacy hash was found (and cleared).
            ValidationError: If a current-scheme hash cannot be parsed, or
                the passphrase cannot be UTF-8 encoded.
        """
        secret = encode_passphrase(passphrase)
        stored_hash = self._stored_hash()
        if stored_hash is None:
            raise NoPassphraseSet()

        if not is_current_hash(stored_hash):
            self._store.compare_and_set_setting(PASSPHRASE_SETTING, stored_hash, "")
            logger.info("Legacy passphrase hash cleared; reset required")
            raise PassphraseResetRequired()

        try:
            self._hasher.verify(stored_hash, secret)
        except VerifyMismatchError:
            logger.warning("Vault passphrase verification failed")
            return False
        except (InvalidHashError, VerificationError) as err:
            raise ValidationError(f"Hash parse error: {err}") from err

        if self._hasher.check_needs_rehash(stored_hash):
            updated = self._store.compare_and_set_setting(
                PASSPHRASE_SETTING, stored_hash, self._hasher.hash(secret)
            )
            if updated:
                logger.info("Rehashed vault passphrase with updated parameters")
        return True
