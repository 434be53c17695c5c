"""
Vault Exceptions — closed error taxonomy for the vault core.

Every failure raised by the vault is a ``VaultError`` subclass tagged with an
``ErrorKind``. Structured fields travel on the exception; caller-facing text is
produced only by ``str(err)`` / ``err.to_dict()`` at the outer boundary.

Security Note:
    Messages never include key material, passphrases, hashes or content.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    UNIQUE_CONSTRAINT = "unique_constraint"
    NO_PASSPHRASE = "no_passphrase"
    PASSPHRASE_RESET_REQUIRED = "passphrase_reset_required"
    LOCK = "lock"
    STORAGE = "storage"


class VaultError(Exception):
    """Base class for all vault errors."""

    kind: ErrorKind = ErrorKind.STORAGE
    default_message: str = "Vault error"

    def __init__(self, message: Optional[str] = None, **fields: Any) -> None:
        self.message = message or self.default_message
        self.fields = fields
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Render the error for an external caller."""
        return {"kind": self.kind.value, "message": self.message, **self.fields}


class ConfigurationError(VaultError):
    """Secret store or data directory unavailable."""

    kind = ErrorKind.CONFIGURATION
    default_message = "Vault configuration error"


class ValidationError(VaultError):
    """Malformed key, encoding, ciphertext or input metadata."""

    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class AuthenticationFailure(VaultError):
    """Ciphertext could not be authenticated.

    Deliberately undifferentiated: tag mismatch and wrong key look the same.
    """

    kind = ErrorKind.AUTHENTICATION
    default_message = "Decryption failed"


class NotFoundError(VaultError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Session not found"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}", session_id=session_id)
        self.session_id = session_id


class UniqueConstraintViolation(VaultError):
    kind = ErrorKind.UNIQUE_CONSTRAINT
    default_message = "Session already exists"

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session already exists: {session_id}", session_id=session_id
        )
        self.session_id = session_id


class NoPassphraseSet(VaultError):
    kind = ErrorKind.NO_PASSPHRASE
    default_message = "No passphrase set"


class PassphraseResetRequired(VaultError):
    """Control signal: the stored legacy hash was cleared, ask for a new one."""

    kind = ErrorKind.PASSPHRASE_RESET_REQUIRED
    default_message = "passphrase_reset_required"


class LockError(VaultError):
    """The shared store lock was poisoned by an earlier failure."""

    kind = ErrorKind.LOCK
    default_message = "Lock error: store connection poisoned"


class StorageError(VaultError):
    kind = ErrorKind.STORAGE
    default_message = "Storage error"
