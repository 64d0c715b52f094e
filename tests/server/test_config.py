"""Tests for ServerConfig and its YAML loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from toolwire import __version__
from toolwire.protocol.errors import ConfigurationError
from toolwire.server.config import ServerConfig, ServerConfigLoader


class TestServerConfig:
    def test_defaults(self) -> None:
        config = ServerConfig()
        assert config.name == "toolwire"
        assert config.version == __version__
        assert config.protocol_version == "2024-11-05"
        assert config.timeout == 30.0
        assert config.max_request_size == 1024 * 1024

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(timeout=0)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig().name = "x"  # type: ignore[misc]

    def test_overrides_skip_none(self) -> None:
        config = ServerConfig(name="a").with_overrides(name=None, timeout=5)
        assert config.name == "a"
        assert config.timeout == 5

    def test_invalid_override(self) -> None:
        with pytest.raises(ConfigurationError):
            ServerConfig().with_overrides(timeout=-1)


class TestServerConfigLoader:
    def test_load_with_env_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TW_NAME", "from-env")
        path = tmp_path / "server.yaml"
        path.write_text("name: ${TW_NAME}\ntimeout: 2.5\nai_tools: false\n")
        config = ServerConfigLoader(path).load()
        assert config.name == "from-env"
        assert config.timeout == 2.5
        assert config.ai_tools is False

    def test_nested_server_section(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("server:\n  name: nested\n")
        assert ServerConfigLoader(path).load().name == "nested"

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("")
        assert ServerConfigLoader(path).load() == ServerConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            ServerConfigLoader(tmp_path / "missing.yaml").load()

    def test_bad_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(ConfigurationError, match="YAML parse error"):
            ServerConfigLoader(path).load()

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            ServerConfigLoader(path).load()

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("nmae: typo\n")
        with pytest.raises(ConfigurationError):
            ServerConfigLoader(path).load()
