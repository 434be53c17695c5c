"""
Vault Keys — the device encryption key held in OS secret storage.

The key is stored as a base64-encoded 32-byte value under a fixed
service/account entry. It is created on first use and never rotated:
losing the entry makes every stored session unreadable.

Security Note:
    Never log key material. Only log the service and account names.
"""
import base64
import binascii
import logging
import secrets
import threading
from typing import Optional

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError

from .config import DEFAULT_ACCOUNT, DEFAULT_SERVICE
from .exceptions import ConfigurationError, ValidationError

logger = logging.getLogger("vessel.vault")

KEY_LENGTH = 32  # AES-256


def generate_key() -> str:
    """Generate a random 32-byte key and return it as a base64 string.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(KEY_LENGTH)).decode("ascii")


def decode_key(encoded: str) -> bytes:
    """Decode a stored key, enforcing the exact key length.

    Raises:
        ValidationError: If the value is not base64 or not 32 bytes long.
    """
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValidationError(f"Key decode error: {err}") from err
    if len(key) != KEY_LENGTH:
        raise ValidationError(f"Invalid key length: {len(key)}")
    return key


class KeyManager:
    """Loads or creates the vault key once, then serves it from memory.

    Construct one instance at startup and hand the key it returns to every
    consumer. Initialization is serialized, so concurrent first calls still
    observe a single key.
    """

    def __init__(
        self,
        service: str = DEFAULT_SERVICE,
        account: str = DEFAULT_ACCOUNT,
        backend: Optional[KeyringBackend] = None,
    ):
        self._service = service
        self._account = account
        self._backend = backend
        self._key: Optional[bytes] = None
        self._lock = threading.Lock()

    @property
    def backend(self) -> KeyringBackend:
        if self._backend is None:
            try:
                self._backend = keyring.get_keyring()
            except KeyringError as err:
                raise ConfigurationError(f"Keyring init error: {err}") from err
        return self._backend

    def get_or_create_key(self) -> bytes:
        """Return the 32-byte vault key.

        Raises:
            ConfigurationError: If the secret store cannot be used.
            ValidationError: If the stored key is malformed.
        """
        if self._key is not None:
            return self._key
        with self._lock:
            if self._key is None:
                self._key = self._load_or_create()
        return self._key

    def _load_or_create(self) -> bytes:
        backend = self.backend
        try:
            encoded = backend.get_password(self._service, self._account)
        except KeyringError as err:
            raise ConfigurationError(f"Keyring read error: {err}") from err

        if encoded is not None:
            logger.debug(
                "Loaded vault key from secret store: %s/%s",
                self._service, self._account,
            )
            return decode_key(encoded)

        encoded = generate_key()
        try:
            backend.set_password(self._service, self._account, encoded)
        except KeyringError as err:
            raise ConfigurationError(f"Keyring store error: {err}") from err
        logger.info(
            "Created new vault key in secret store: %s/%s",
            self._service, self._account,
        )
        return decode_key(encoded)
