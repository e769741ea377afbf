"""Tests for config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from task_tracker.config import (
    get_log_level,
    get_seed_defaults,
    get_storage_config,
    load_config,
)
from task_tracker.constants import LOG_LEVEL_ENV


class TestLoadConfig:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == ({}, None)

    def test_yaml_file(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("log_level: debug\nseed_defaults: false\n")
        config, err = load_config(tmp_path)
        assert err is None
        assert config == {"log_level": "debug", "seed_defaults": False}

    def test_invalid_yaml_reports_error(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("storage: [unclosed\n")
        config, err = load_config(tmp_path)
        assert config == {}
        assert err is not None and "YAMLError" in err

    def test_non_mapping_reports_error(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("- a\n- b\n")
        config, err = load_config(tmp_path)
        assert config == {}
        assert "expected object" in err


class TestAccessors:
    def test_storage_defaults(self, tmp_path: Path) -> None:
        cfg = get_storage_config({}, tmp_path)
        assert cfg == {"dir": tmp_path / "storage", "key": "tasks"}

    def test_storage_absolute_dir(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere"
        cfg = get_storage_config({"storage": {"dir": str(target), "key": "k"}}, tmp_path / "state")
        assert cfg == {"dir": target, "key": "k"}

    def test_storage_invalid_key_falls_back(self, tmp_path: Path) -> None:
        cfg = get_storage_config({"storage": {"key": "my tasks"}}, tmp_path)
        assert cfg["key"] == "tasks"
        cfg = get_storage_config({"storage": {"key": "../escape"}}, tmp_path)
        assert cfg["key"] == "tasks"

    def test_log_level_env_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
        assert get_log_level({"log_level": "debug"}) == "WARNING"

    def test_log_level_from_config_and_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        assert get_log_level({"log_level": "debug"}) == "DEBUG"
        assert get_log_level({"log_level": "loud"}) == "INFO"
        assert get_log_level({}) == "INFO"

    def test_seed_defaults(self) -> None:
        assert get_seed_defaults({}) is True
        assert get_seed_defaults({"seed_defaults": False}) is False
        assert get_seed_defaults({"seed_defaults": "no"}) is True
