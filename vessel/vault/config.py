"""
Vault Configuration — data location, secret-store entry and KDF settings.

Reads overrides from environment variables:
    VESSEL_DATA_DIR = <directory holding vessel.db>
    VESSEL_KEYRING_SERVICE / VESSEL_KEYRING_ACCOUNT = <secret store entry>
    VESSEL_ARGON2_TIME_COST / _MEMORY_COST / _PARALLELISM = <integers>

Security Note:
    Never log key material. Only log locations and entry names.
"""
import os
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("vessel.vault")

DEFAULT_SERVICE = "vessel"
DEFAULT_ACCOUNT = "encryption-key"
DEFAULT_DB_FILENAME = "vessel.db"


def default_data_dir() -> Path:
    """Return the per-user application data directory."""
    base = os.environ.get("XDG_DATA_HOME")
    if base:
        return Path(base) / "vessel"
    return Path.home() / ".local" / "share" / "vessel"


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    data_dir: Path = Field(default_factory=default_data_dir)
    db_filename: str = Field(default=DEFAULT_DB_FILENAME, min_length=1)
    keyring_service: str = Field(default=DEFAULT_SERVICE, min_length=1)
    keyring_account: str = Field(default=DEFAULT_ACCOUNT, min_length=1)
    argon2_time_cost: int = Field(default=3, ge=1)
    argon2_memory_cost: int = Field(default=65536, ge=8)
    argon2_parallelism: int = Field(default=4, ge=1)

    @field_validator("db_filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """The database must live directly inside data_dir."""
        if Path(v).name != v:
            raise ValueError(f"db_filename must be a bare file name, got {v!r}")
        return v

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig from environment overrides.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict[str, object] = {}
        env_map = {
            "VESSEL_DATA_DIR": "data_dir",
            "VESSEL_KEYRING_SERVICE": "keyring_service",
            "VESSEL_KEYRING_ACCOUNT": "keyring_account",
            "VESSEL_ARGON2_TIME_COST": "argon2_time_cost",
            "VESSEL_ARGON2_MEMORY_COST": "argon2_memory_cost",
            "VESSEL_ARGON2_PARALLELISM": "argon2_parallelism",
        }
        for env_name, field in env_map.items():
            raw = os.environ.get(env_name)
            if raw:
                values[field] = raw
        config = cls(**values)
        logger.debug(
            "Vault config: data_dir=%s keyring=%s/%s",
            config.data_dir, config.keyring_service, config.keyring_account,
        )
        return config
