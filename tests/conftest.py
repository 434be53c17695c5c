import os

import pytest
from argon2 import PasswordHasher
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from vessel.vault import PassphraseGate, SessionStore, SessionVault


class MemoryKeyring(KeyringBackend):
    """In-process secret store standing in for the OS keychain."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}
        self.reads = 0
        self.writes = 0

    def get_password(self, service, username):
        self.reads += 1
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.writes += 1
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise PasswordDeleteError(username) from None


class BrokenKeyring(KeyringBackend):
    """Secret store that is present but unusable (e.g. locked, no D-Bus)."""

    priority = 1

    def get_password(self, service, username):
        raise KeyringError("secret service unavailable")

    def set_password(self, service, username, password):
        raise KeyringError("secret service unavailable")


@pytest.fixture
def memory_keyring():
    return MemoryKeyring()


@pytest.fixture
def key():
    return os.urandom(32)


@pytest.fixture
def fast_hasher():
    """Argon2 with minimal cost so tests stay quick."""
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def store(tmp_path):
    s = SessionStore.open(tmp_path)
    yield s
    s.close()


@pytest.fixture
def gate(store, fast_hasher):
    return PassphraseGate(store, fast_hasher)


@pytest.fixture
def vault(store, key, gate):
    return SessionVault(store, key, gate)


@pytest.fixture
def metadata():
    return {
        "average_vibe": "#7fb3d5",
        "dominant_state": "grounding",
        "duration_ms": 125_000,
        "word_count": 312,
    }


@pytest.fixture
def broken_keyring():
    return BrokenKeyring()
