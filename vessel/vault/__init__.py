"""Session Vault — Encrypted writing sessions bound to a device key.

Security Note (Threat Model):
    Session content is encrypted at rest with a key held in OS secret
    storage. Decrypted content exists in process memory while in use, and
    anyone able to read the secret store entry can decrypt every session.
    The vault passphrase is an access gate for the UI, not an encryption key.
"""

from .config import VaultConfig
from .crypto import decrypt, encrypt
from .exceptions import (
    AuthenticationFailure,
    ConfigurationError,
    ErrorKind,
    LockError,
    NoPassphraseSet,
    NotFoundError,
    PassphraseResetRequired,
    StorageError,
    UniqueConstraintViolation,
    ValidationError,
    VaultError,
)
from .keys import KeyManager, generate_key
from .models import SessionMeta, SessionMetadata, SessionRecord
from .passphrase import PassphraseGate
from .session_vault import SessionVault
from .store import SessionStore

__all__ = [
    "SessionVault",
    "SessionStore",
    "PassphraseGate",
    "KeyManager",
    "generate_key",
    "encrypt",
    "decrypt",
    "VaultConfig",
    "SessionMeta",
    "SessionMetadata",
    "SessionRecord",
    "VaultError",
    "ErrorKind",
    "ConfigurationError",
    "ValidationError",
    "AuthenticationFailure",
    "NotFoundError",
    "UniqueConstraintViolation",
    "NoPassphraseSet",
    "PassphraseResetRequired",
    "LockError",
    "StorageError",
]
