"""
Tests for the device key held in OS secret storage.
"""
import base64
import os
import threading

import pytest

from vessel.vault.exceptions import ConfigurationError, ValidationError
from vessel.vault.keys import KEY_LENGTH, KeyManager, decode_key, generate_key


class TestGenerateKey:

    def test_generate_key_is_32_bytes(self):
        """Test generated keys decode to 32 bytes."""
        assert len(base64.b64decode(generate_key())) == KEY_LENGTH

    def test_generated_keys_differ(self):
        assert generate_key() != generate_key()

    def test_decode_rejects_wrong_length(self):
        """Test a 16-byte key is refused."""
        encoded = base64.b64encode(os.urandom(16)).decode("ascii")
        with pytest.raises(ValidationError, match="Invalid key length: 16"):
            decode_key(encoded)


class TestKeyManager:
    """Tests for KeyManager.get_or_create_key."""

    def test_creates_and_persists_key(self, memory_keyring):
        """Test a missing entry is generated and written to the store."""
        manager = KeyManager(backend=memory_keyring)
        key = manager.get_or_create_key()
        assert len(key) == KEY_LENGTH
        stored = memory_keyring.entries[("vessel", "encryption-key")]
        assert base64.b64decode(stored) == key

    def test_loads_existing_key(self, memory_keyring):
        """Test an existing entry is read instead of replaced."""
        existing = os.urandom(32)
        memory_keyring.entries[("vessel", "encryption-key")] = (
            base64.b64encode(existing).decode("ascii")
        )
        manager = KeyManager(backend=memory_keyring)
        assert manager.get_or_create_key() == existing
        assert memory_keyring.writes == 0

    def test_cached_after_first_call(self, memory_keyring):
        """Test later calls return the same bytes without touching the store."""
        manager = KeyManager(backend=memory_keyring)
        first = manager.get_or_create_key()
        reads = memory_keyring.reads
        for _ in range(5):
            assert manager.get_or_create_key() is first
        assert memory_keyring.reads == reads

    def test_stable_across_restarts(self, memory_keyring):
        """Test a new manager against the same store returns the same key."""
        first = KeyManager(backend=memory_keyring).get_or_create_key()
        second = KeyManager(backend=memory_keyring).get_or_create_key()
        assert first == second

    def test_custom_entry_names(self, memory_keyring):
        manager = KeyManager("other-app", "other-key", backend=memory_keyring)
        manager.get_or_create_key()
        assert ("other-app", "other-key") in memory_keyring.entries

    def test_malformed_stored_key(self, memory_keyring):
        """Test a non-base64 entry raises ValidationError."""
        memory_keyring.entries[("vessel", "encryption-key")] = "%%%not-base64%%%"
        with pytest.raises(ValidationError):
            KeyManager(backend=memory_keyring).get_or_create_key()

    def test_wrong_length_stored_key(self, memory_keyring):
        memory_keyring.entries[("vessel", "encryption-key")] = (
            base64.b64encode(os.urandom(24)).decode("ascii")
        )
        with pytest.raises(ValidationError, match="24"):
            KeyManager(backend=memory_keyring).get_or_create_key()

    def test_unavailable_store(self, broken_keyring):
        """Test secret-store failures surface as ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Keyring read error"):
            KeyManager(backend=broken_keyring).get_or_create_key()

    def test_failed_init_is_not_cached(self, memory_keyring):
        """Test a failed first call leaves the manager able to retry."""
        memory_keyring.entries[("vessel", "encryption-key")] = "bad!"
        manager = KeyManager(backend=memory_keyring)
        with pytest.raises(ValidationError):
            manager.get_or_create_key()
        del memory_keyring.entries[("vessel", "encryption-key")]
        assert len(manager.get_or_create_key()) == KEY_LENGTH

    def test_concurrent_first_calls_share_one_key(self, memory_keyring):
        """Test racing threads all observe the single created key."""
        backend = memory_keyring
        manager = KeyManager(backend=backend)
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(manager.get_or_create_key())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(set(results)) == 1
        assert backend.writes == 1
