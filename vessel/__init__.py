"""Vessel: local encrypted session vault."""
from .version import __version__
from .vault import SessionVault, VaultConfig

__all__ = ["__version__", "SessionVault", "VaultConfig"]
