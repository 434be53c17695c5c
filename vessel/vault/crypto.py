"""
Vault Crypto Core — AES-256-GCM envelope for session content at rest.

Envelope format (base64 text):
    [nonce 12B][encrypted_payload][GCM tag 16B]

The envelope carries no version or algorithm tag; changing the format
requires migrating every stored row.

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit, drawn fresh for every call.
"""
import os
import base64
import binascii

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import AuthenticationFailure, ValidationError
from .keys import KEY_LENGTH

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
MIN_ENVELOPE_SIZE = NONCE_SIZE + 1


def _cipher(key: bytes) -> AESGCM:
    if len(key) != KEY_LENGTH:
        raise ValidationError(f"Invalid key length: {len(key)}")
    return AESGCM(key)


def encrypt(plaintext: bytes, key: bytes) -> str:
    """Encrypt plaintext with AES-256-GCM.

    Args:
        plaintext: Data to encrypt.
        key: Raw 32-byte key.

    Returns:
        base64(nonce || ciphertext || tag).
    """
    cipher = _cipher(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + ct).decode("ascii")


def decrypt(envelope: str, key: bytes) -> bytes:
    """Decrypt a base64(nonce || ciphertext || tag) envelope.

    Args:
        envelope: Text produced by ``encrypt``.
        key: Raw 32-byte key.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        ValidationError: If the envelope is not base64 or is too short.
        AuthenticationFailure: If the tag does not verify under ``key``.
    """
    try:
        combined = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValidationError(f"Base64 decode error: {err}") from err
    if len(combined) < MIN_ENVELOPE_SIZE:
        raise ValidationError("Ciphertext too short")
    cipher = _cipher(key)
    nonce = combined[:NONCE_SIZE]
    ct = combined[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise AuthenticationFailure() from err


def encrypt_text(plaintext: str, key: bytes) -> str:
    try:
        data = plaintext.encode("utf-8")
    except UnicodeEncodeError as err:
        raise ValidationError(f"UTF-8 error: {err}") from err
    return encrypt(data, key)


def decrypt_text(envelope: str, key: bytes) -> str:
    plaintext = decrypt(envelope, key)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise ValidationError(f"UTF-8 error: {err}") from err
