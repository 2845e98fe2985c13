"""Tests for SettingsManager — env template, layered config and log level."""

from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from modplan.settings import _CONFIG_KEYS, EditorSettings, SettingsManager


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in _CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------

class TestEnvTemplate:

    def test_generate_env_template(self, tmp_path):
        path = SettingsManager().generate_env_template(tmp_path)
        assert path == tmp_path / ".env.example"
        content = path.read_text()
        assert "MODPLAN_ENV=development" in content
        assert "MODPLAN_SCALE_FACTOR" in content
        assert "MODPLAN_SNAP_MODE=off" in content


# ---------------------------------------------------------------------------
# Layered loading
# ---------------------------------------------------------------------------

class TestLoadConfig:

    def test_defaults_use_development_profile(self, tmp_path):
        config = SettingsManager().load_config(tmp_path)
        assert config["MODPLAN_ENV"] == "development"
        assert config["MODPLAN_LOG_LEVEL"] == "DEBUG"
        assert config["MODPLAN_GRID_SIZE_MM"] == "100"

    def test_production_profile(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MODPLAN_ENV", "production")
        assert SettingsManager().load_config(tmp_path)["MODPLAN_LOG_LEVEL"] == "WARNING"

    def test_config_json_overrides_profile(self, tmp_path):
        (tmp_path / ".modplan").mkdir()
        (tmp_path / ".modplan" / "config.json").write_text(json.dumps({"MODPLAN_LOG_LEVEL": "ERROR"}))
        assert SettingsManager().load_config(tmp_path)["MODPLAN_LOG_LEVEL"] == "ERROR"

    def test_unreadable_config_json_is_skipped(self, tmp_path):
        (tmp_path / ".modplan").mkdir()
        (tmp_path / ".modplan" / "config.json").write_text("{not json")
        assert SettingsManager().load_config(tmp_path)["MODPLAN_ENV"] == "development"

    def test_env_file_overrides_config_json(self, tmp_path):
        (tmp_path / ".modplan").mkdir()
        (tmp_path / ".modplan" / "config.json").write_text(json.dumps({"MODPLAN_SCALE_FACTOR": 0.5}))
        (tmp_path / ".env").write_text("# local\nMODPLAN_SCALE_FACTOR=0.25\n\n")
        assert SettingsManager().load_config(tmp_path)["MODPLAN_SCALE_FACTOR"] == "0.25"

    def test_environment_overrides_all(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("MODPLAN_SNAP_MODE=grid\n")
        monkeypatch.setenv("MODPLAN_SNAP_MODE", "element")
        assert SettingsManager().load_config(tmp_path)["MODPLAN_SNAP_MODE"] == "element"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestLoadSettings:

    def test_typed_settings(self, tmp_path):
        (tmp_path / ".env").write_text("MODPLAN_SCALE_FACTOR=0.1\nMODPLAN_GRID_SIZE_MM=300\n")
        settings = SettingsManager().load_settings(tmp_path)
        assert settings.scale_factor == pytest.approx(0.1)
        assert settings.grid_size_mm == 300
        assert settings.snap_mode == "off"

    def test_non_positive_scale_rejected(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MODPLAN_SCALE_FACTOR", "0")
        with pytest.raises(ValidationError):
            SettingsManager().load_settings(tmp_path)

    def test_unknown_snap_mode_rejected(self):
        with pytest.raises(ValidationError):
            EditorSettings(snap_mode="magnet")

    def test_apply_log_level(self):
        logger = logging.getLogger("modplan")
        previous = logger.level
        try:
            SettingsManager().apply_log_level(EditorSettings(log_level="WARNING"))
            assert logger.level == logging.WARNING
        finally:
            logger.setLevel(previous)

    def test_apply_unknown_log_level_keeps_current(self):
        logger = logging.getLogger("modplan")
        previous = logger.level
        SettingsManager().apply_log_level(EditorSettings(log_level="CHATTY"))
        assert logger.level == previous
