"""
Tests for VaultConfig and the error taxonomy.
"""
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from vessel.vault.config import VaultConfig, default_data_dir
from vessel.vault.exceptions import (
    ErrorKind,
    LockError,
    NotFoundError,
    PassphraseResetRequired,
    UniqueConstraintViolation,
    VaultError,
)


class TestVaultConfig:
    """Tests for configuration defaults, validation and env loading."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        config = VaultConfig()
        assert config.data_dir == tmp_path / "vessel"
        assert config.db_path == tmp_path / "vessel" / "vessel.db"
        assert config.keyring_service == "vessel"
        assert config.keyring_account == "encryption-key"

    def test_default_data_dir_without_xdg(self, monkeypatch):
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        assert default_data_dir() == Path.home() / ".local" / "share" / "vessel"

    def test_from_env(self, monkeypatch, tmp_path):
        """Test environment variables override defaults."""
        monkeypatch.setenv("VESSEL_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("VESSEL_KEYRING_SERVICE", "vessel-dev")
        monkeypatch.setenv("VESSEL_ARGON2_TIME_COST", "5")
        config = VaultConfig.from_env()
        assert config.data_dir == tmp_path
        assert config.keyring_service == "vessel-dev"
        assert config.argon2_time_cost == 5

    def test_rejects_bad_costs(self):
        with pytest.raises(PydanticValidationError):
            VaultConfig(argon2_time_cost=0)
        with pytest.raises(PydanticValidationError):
            VaultConfig(argon2_memory_cost=4)

    def test_rejects_nested_filename(self):
        """Test db_filename cannot point outside data_dir."""
        with pytest.raises(PydanticValidationError):
            VaultConfig(db_filename="../elsewhere.db")


class TestErrors:
    """Tests for the closed error hierarchy."""

    def test_every_error_is_a_vault_error(self):
        for err in (LockError(), PassphraseResetRequired(), NotFoundError("x")):
            assert isinstance(err, VaultError)

    def test_to_dict_carries_fields(self):
        """Test structured fields are rendered for the caller."""
        err = UniqueConstraintViolation("abc")
        assert err.to_dict() == {
            "kind": "unique_constraint",
            "message": "Session already exists: abc",
            "session_id": "abc",
        }

    def test_kinds_are_distinct(self):
        kinds = {cls.kind for cls in VaultError.__subclasses__()}
        assert len(kinds) == len(VaultError.__subclasses__())
        assert kinds <= set(ErrorKind)

    def test_lock_error_text(self):
        assert "Lock error" in str(LockError())
