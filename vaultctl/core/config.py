"""Configuration management for vaultctl.

Supports YAML profiles and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from vaultctl.core.exceptions import ConfigurationError, ProfileNotFoundError
from vaultctl.uploaders.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_PARALLEL_CHUNKS,
    DEFAULT_MAX_PARALLEL_UPLOADS,
    DEFAULT_POLL_INTERVAL,
)

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "vaultctl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Environment variable names
ENV_URL = "VAULT_URL"
ENV_USER = "VAULT_USER"
ENV_PASS = "VAULT_PASS"
ENV_PROFILE = "VAULT_PROFILE"
ENV_VERIFY_SSL = "VAULT_VERIFY_SSL"
ENV_TIMEOUT = "VAULT_TIMEOUT"
ENV_CHUNK_SIZE = "VAULT_CHUNK_SIZE"
ENV_MAX_PARALLEL_CHUNKS = "VAULT_MAX_PARALLEL_CHUNKS"
ENV_MAX_PARALLEL_UPLOADS = "VAULT_MAX_PARALLEL_UPLOADS"


# =============================================================================
# Deposit Options
# =============================================================================


@dataclass
class DepositOptions:
    """Upload tuning for a deposit, fixed for the lifetime of one run."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_parallel_chunks: int = DEFAULT_MAX_PARALLEL_CHUNKS
    max_parallel_uploads: int = DEFAULT_MAX_PARALLEL_UPLOADS
    resume_deposit_id: int = 0
    suppress_progress: bool = False
    skip_content_type_detection: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DepositOptions":
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as e:
            raise ConfigurationError(f"Invalid deposit options: {e}", field="deposit") from e

    def replace(self, **overrides: Any) -> "DepositOptions":
        """Return a copy with non-None overrides applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return DepositOptions.from_dict(data)


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Configuration profile for a Vault server."""

    url: str
    verify_ssl: bool = True
    timeout: int = 30
    collection: Optional[str] = None
    deposit: DepositOptions = field(default_factory=DepositOptions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "verify_ssl": self.verify_ssl,
            "timeout": self.timeout,
            "collection": self.collection,
            "deposit": self.deposit.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from dictionary."""
        return cls(
            url=data.get("url", ""),
            verify_ssl=data.get("verify_ssl", True),
            timeout=data.get("timeout", 30),
            collection=data.get("collection"),
            deposit=DepositOptions.from_dict(data.get("deposit") or {}),
        )


# =============================================================================
# Config
# =============================================================================


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer", field=name, value=raw) from e


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.
        """
        path = config_path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")

                for name, pdata in (data.get("profiles") or {}).items():
                    config.profiles[name] = Profile.from_dict(pdata or {})
            except ConfigurationError:
                raise
            except Exception as e:
                raise ConfigurationError(f"Failed to load config: {e}")

        if url := os.getenv(ENV_URL):
            verify_ssl = os.getenv(ENV_VERIFY_SSL, "true").lower() in ("true", "1", "yes")
            timeout = _env_int(ENV_TIMEOUT) or 30
            existing = config.profiles.get("default")
            config.profiles["default"] = Profile(
                url=url,
                verify_ssl=verify_ssl,
                timeout=timeout,
                collection=existing.collection if existing else None,
                deposit=existing.deposit if existing else DepositOptions(),
            )

        if profile := os.getenv(ENV_PROFILE):
            config.default_profile = profile

        overrides = {
            "chunk_size": _env_int(ENV_CHUNK_SIZE),
            "max_parallel_chunks": _env_int(ENV_MAX_PARALLEL_CHUNKS),
            "max_parallel_uploads": _env_int(ENV_MAX_PARALLEL_UPLOADS),
        }
        if any(v is not None for v in overrides.values()):
            for p in config.profiles.values():
                p.deposit = p.deposit.replace(**overrides)

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file (excludes secrets)."""
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def add_profile(
        self,
        name: str,
        url: str,
        verify_ssl: bool = True,
        timeout: int = 30,
        collection: Optional[str] = None,
    ) -> Profile:
        """Add or update a profile."""
        profile = Profile(
            url=url,
            verify_ssl=verify_ssl,
            timeout=timeout,
            collection=collection,
        )
        self.profiles[name] = profile
        return profile


def get_credentials() -> tuple[Optional[str], Optional[str]]:
    """Get credentials from environment variables.

    Returns:
        Tuple of (username, password) from environment.
    """
    return os.getenv(ENV_USER), os.getenv(ENV_PASS)
