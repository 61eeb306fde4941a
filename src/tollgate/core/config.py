"""Configuration types with environment variable support.

All settings can be configured via environment variables with the TOLLGATE_ prefix.
Example: TOLLGATE_REALM="Staging" sets the challenge realm.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tollgate.security.basicauth import (
    DEFAULT_REALM,
    BasicAuthOptions,
    ConfigurationError,
    Credential,
)
from tollgate.security.hashing import get_digest_function


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load configuration from a YAML or TOML file.

    Args:
        path: Path to the configuration file (.yaml, .yml, or .toml)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file has encoding errors, invalid syntax, or unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Config file encoding error in {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            return tomllib.loads(content)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


def flatten_config(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in config.items():
        full_key = f"{prefix}_{key}" if prefix else key
        if isinstance(value, dict):
            result.update(flatten_config(value, full_key))
        else:
            result[full_key] = value
    return result


class UserEntry(BaseModel):
    """An additional user from configuration."""

    username: str
    password: str = Field(repr=False)


class AuthSettings(BaseSettings):
    """Basic auth configuration.

    All settings can be overridden via environment variables:
    - TOLLGATE_USERNAME / TOLLGATE_PASSWORD: Primary credentials
    - TOLLGATE_REALM: Realm shown in the challenge
    - TOLLGATE_HASH_ALGORITHM: "sha256" or "blake3"
    - TOLLGATE_EXTRA_USERS: JSON list of {"username", "password"} objects
    - TOLLGATE_EXCLUDE_PATHS: JSON list of paths served without auth
    """

    model_config = SettingsConfigDict(
        env_prefix="TOLLGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    username: str | None = Field(
        default=None,
        description="Primary username for basic authentication.",
    )
    password: str | None = Field(
        default=None,
        repr=False,
        description="Primary password for basic authentication.",
    )
    realm: str = Field(
        default=DEFAULT_REALM,
        description="Realm presented in the WWW-Authenticate challenge.",
    )
    hash_algorithm: str = Field(
        default="sha256",
        description="Digest used before constant-time comparison: 'sha256' or 'blake3'.",
    )
    extra_users: list[UserEntry] = Field(
        default_factory=list,
        description="Additional users, checked after the primary user in order.",
    )
    exclude_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Request paths that bypass authentication.",
    )
    log_level: str = Field(
        default="info",
        description="Log level (debug, info, warning, error).",
    )

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> AuthSettings:
        """Build settings from a YAML/TOML file. Explicit overrides win."""
        values = flatten_config(load_config_from_file(path))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def credentials(self) -> tuple[Credential, ...]:
        """Additional users as Credentials."""
        return tuple(
            Credential(username=user.username, password=user.password)
            for user in self.extra_users
        )

    def to_options(self) -> BasicAuthOptions:
        """Build basic auth options.

        Raises:
            ConfigurationError: If username or password is not set.
            ValueError: If hash_algorithm is not supported.
        """
        if self.username is None or self.password is None:
            raise ConfigurationError("basic auth requires a username and password")
        return BasicAuthOptions(
            username=self.username,
            password=self.password,
            realm=self.realm,
            hash_function=get_digest_function(self.hash_algorithm),
        )


_config: AuthSettings | None = None


def get_config() -> AuthSettings:
    """Get the global configuration instance.

    Returns a cached AuthSettings that reads from environment variables.
    To reload config (e.g., in tests), call clear_config() first.
    """
    global _config
    if _config is None:
        _config = AuthSettings()
    return _config


def clear_config() -> None:
    """Clear the cached configuration.

    Call this to force reloading of environment variables on next get_config() call.
    Useful for testing.
    """
    global _config
    _config = None
