"""Tests for configuration loading from environment variables and files."""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from tollgate.core.config import (
    AuthSettings,
    clear_config,
    flatten_config,
    get_config,
    load_config_from_file,
)
from tollgate.security.basicauth import ConfigurationError, Credential
from tollgate.security.hashing import blake3_digest, sha256_digest


class TestAuthSettings:
    """Test AuthSettings."""

    def test_default_values(self) -> None:
        """Test default values."""
        with patch.dict(os.environ, {}, clear=True):
            config = AuthSettings(_env_file=None)
            assert config.username is None
            assert config.password is None
            assert config.realm == "Secure Area"
            assert config.hash_algorithm == "sha256"
            assert config.extra_users == []
            assert config.exclude_paths == ["/health"]
            assert config.log_level == "info"

    def test_env_override_credentials(self) -> None:
        """Test TOLLGATE_USERNAME and TOLLGATE_PASSWORD env vars."""
        with patch.dict(os.environ, {"TOLLGATE_USERNAME": "admin", "TOLLGATE_PASSWORD": "pw"}):
            config = AuthSettings()
            assert config.username == "admin"
            assert config.password == "pw"

    def test_env_override_realm(self) -> None:
        """Test TOLLGATE_REALM env var."""
        with patch.dict(os.environ, {"TOLLGATE_REALM": "Staging"}):
            assert AuthSettings().realm == "Staging"

    def test_env_extra_users_json(self) -> None:
        """Test TOLLGATE_EXTRA_USERS parses a JSON list."""
        users = [{"username": "a", "password": "1"}, {"username": "b", "password": "2"}]
        with patch.dict(os.environ, {"TOLLGATE_EXTRA_USERS": json.dumps(users)}):
            config = AuthSettings()
            assert config.credentials() == (Credential("a", "1"), Credential("b", "2"))

    def test_password_hidden_from_repr(self) -> None:
        """Test the password is not shown in repr."""
        config = AuthSettings(username="u", password="hunter2")
        assert "hunter2" not in repr(config)

    def test_to_options(self) -> None:
        """Test conversion to basic auth options."""
        options = AuthSettings(username="u", password="p", realm="R").to_options()
        assert options.username == "u"
        assert options.password == "p"
        assert options.realm == "R"
        assert options.hash_function is sha256_digest

    def test_to_options_blake3(self) -> None:
        """Test the hash algorithm selects the digest function."""
        options = AuthSettings(username="u", password="p", hash_algorithm="blake3").to_options()
        assert options.hash_function is blake3_digest

    def test_to_options_requires_credentials(self) -> None:
        """Test missing credentials raise a configuration error."""
        with pytest.raises(ConfigurationError):
            AuthSettings(username="u", password=None).to_options()

    def test_to_options_unknown_algorithm(self) -> None:
        """Test unknown hash algorithms are rejected."""
        with pytest.raises(ValueError):
            AuthSettings(username="u", password="p", hash_algorithm="md5").to_options()


class TestConfigFiles:
    """Test YAML/TOML loading."""

    def test_load_yaml(self, tmp_path) -> None:
        """Test loading a YAML file."""
        path = tmp_path / "tollgate.yaml"
        path.write_text("username: admin\npassword: pw\nrealm: Docs\n")
        assert load_config_from_file(path) == {
            "username": "admin",
            "password": "pw",
            "realm": "Docs",
        }

    def test_load_toml(self, tmp_path) -> None:
        """Test loading a TOML file."""
        path = tmp_path / "tollgate.toml"
        path.write_text('username = "admin"\npassword = "pw"\n')
        assert load_config_from_file(path) == {"username": "admin", "password": "pw"}

    def test_empty_yaml(self, tmp_path) -> None:
        """Test an empty YAML file yields an empty dict."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_from_file(path) == {}

    def test_missing_file(self, tmp_path) -> None:
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config_from_file(tmp_path / "missing.yaml")

    def test_unsupported_format(self, tmp_path) -> None:
        """Test unsupported suffixes raise ValueError."""
        path = tmp_path / "config.ini"
        path.write_text("[auth]\n")
        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config_from_file(path)

    def test_invalid_yaml(self, tmp_path) -> None:
        """Test invalid YAML raises ValueError."""
        path = tmp_path / "bad.yaml"
        path.write_text("username: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_from_file(path)

    def test_invalid_toml(self, tmp_path) -> None:
        """Test invalid TOML raises ValueError."""
        path = tmp_path / "bad.toml"
        path.write_text("username = \n")
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config_from_file(path)

    def test_flatten_config(self) -> None:
        """Test nested keys are joined with underscores."""
        assert flatten_config({"hash": {"algorithm": "blake3"}, "realm": "R"}) == {
            "hash_algorithm": "blake3",
            "realm": "R",
        }

    def test_from_file_with_overrides(self, tmp_path) -> None:
        """Test explicit overrides win over file values."""
        path = tmp_path / "tollgate.yaml"
        path.write_text(
            "username: admin\n"
            "password: pw\n"
            "extra_users:\n"
            "  - username: ops\n"
            "    password: x\n"
        )
        config = AuthSettings.from_file(path, realm="Override", password=None)
        assert config.username == "admin"
        assert config.password == "pw"
        assert config.realm == "Override"
        assert config.credentials() == (Credential("ops", "x"),)


class TestGetConfig:
    """Test cached configuration."""

    def test_cached_instance(self) -> None:
        """Test get_config returns the same instance until cleared."""
        clear_config()
        first = get_config()
        assert get_config() is first
        clear_config()
        assert get_config() is not first
        clear_config()

    def test_clear_reloads_env(self) -> None:
        """Test clear_config picks up new env values."""
        clear_config()
        with patch.dict(os.environ, {"TOLLGATE_REALM": "Reloaded"}):
            clear_config()
            assert get_config().realm == "Reloaded"
        clear_config()
