"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from pancheck.domain.entities import Platform
from pancheck.infrastructure.composition import build_registry
from pancheck.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "pancheck-test",
        "environment": "test",
        "locale": "zh",
        "http": {
            "request_timeout_seconds": 5.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "baidu": {"concurrency_limit": 2, "min_interval_seconds": 1.0},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config, allow_unicode=True), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "pancheck"
        assert config.environment == "dev"
        assert config.locale == "en"
        assert config.http_request_timeout_seconds == 10.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev → console
        assert config.baidu.enabled is True
        assert config.baidu.concurrency_limit == 5
        assert config.baidu.timeout_seconds == 30.0
        assert config.baidu.min_interval_seconds == 0.5

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"

    def test_sectioned_dump_round_trips(self) -> None:
        config = load_config()
        dumped = config.to_sectioned_dict()
        assert dumped["baidu"]["concurrency_limit"] == 5
        assert dumped["http"]["request_timeout_seconds"] == 10.0
        assert dumped["logging"] == {"level": "INFO", "format": "console"}


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "pancheck-test"
        assert config.environment == "test"
        assert config.locale == "zh"
        assert config.http_request_timeout_seconds == 5.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.baidu.concurrency_limit == 2
        assert config.baidu.min_interval_seconds == 1.0

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_partial_override_preserves_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.yaml"
        config_data = {"baidu": {"timeout_seconds": 99.0}}
        path.write_text(yaml.dump(config_data), encoding="utf-8")

        config = load_config(config_path=path)
        assert config.baidu.timeout_seconds == 99.0
        assert config.baidu.concurrency_limit == 5  # default preserved
        assert config.app_name == "pancheck"  # default preserved

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "pancheck"

    def test_non_mapping_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"baidu_concurrency_limit": 0},
            {"baidu_timeout_seconds": 0},
            {"baidu_min_interval_seconds": -1},
            {"http_request_timeout_seconds": 0},
            {"locale": "fr"},
        ],
    )
    def test_invalid_values_rejected(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides=overrides)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PANCHECK_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("PANCHECK_BAIDU_CONCURRENCY_LIMIT", "7")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.baidu.concurrency_limit == 7
        # YAML values not overridden by ENV stay
        assert config.app_name == "pancheck-test"
        assert config.baidu.min_interval_seconds == 1.0

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PANCHECK_ENVIRONMENT", "prod")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod → json

    def test_env_disables_platform(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PANCHECK_BAIDU_ENABLED", "false")

        config = load_config()
        assert config.baidu.enabled is False
        assert build_registry(config).platforms == []

    def test_dotenv_file_feeds_env_layer(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("PANCHECK_LOCALE=zh\n", encoding="utf-8")
        # load_dotenv writes os.environ directly; register the key for undo.
        monkeypatch.setenv("PANCHECK_LOCALE", "")
        monkeypatch.delenv("PANCHECK_LOCALE")

        config = load_config(dotenv_path=dotenv)
        assert config.locale == "zh"

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PANCHECK_BAIDU_TIMEOUT_SECONDS", "12")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"baidu_timeout_seconds": 3.0, "log_level": "ERROR"},
        )
        assert config.baidu.timeout_seconds == 3.0
        assert config.log_level == "ERROR"

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"baidu": {"concurrency_limit": 9}},
        )
        assert config.baidu.concurrency_limit == 9
        assert config.baidu.min_interval_seconds == 1.0  # YAML sibling kept


class TestComposition:
    def test_registry_uses_config(self, yaml_config: Path) -> None:
        registry = build_registry(load_config(config_path=yaml_config))

        checker = registry.get(Platform.BAIDU)
        assert checker is not None
        assert checker.concurrency_limit == 2  # type: ignore[attr-defined]
