"""SettingsManager — environment profiles and editor settings.

Configuration is owned outside the geometry core; the core only reads the
resulting :class:`EditorSettings` per call and never mutates it.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from modplan import config as cfg

logger = logging.getLogger(__name__)

# All known configuration keys with defaults
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "MODPLAN_ENV": {"default": "development", "description": "Environment profile"},
    "MODPLAN_LOG_LEVEL": {"default": "INFO", "description": "Logging level"},
    "MODPLAN_SCALE_FACTOR": {"default": cfg.DEFAULT_SCALE_FACTOR, "description": "Canvas pixels per millimetre"},
    "MODPLAN_GRID_SIZE_MM": {"default": cfg.DEFAULT_GRID_SIZE_MM, "description": "Drawing grid spacing (mm)"},
    "MODPLAN_SNAP_MODE": {"default": cfg.DEFAULT_SNAP_MODE, "description": "Snap mode: off, grid or element"},
    "MODPLAN_ELEMENT_GAP_MM": {"default": cfg.DEFAULT_ELEMENT_GAP_MM, "description": "Gap kept between snapped elements (mm)"},
    "MODPLAN_GRID_WIDTH_M": {"default": cfg.DEFAULT_GRID_WIDTH_M, "description": "Grid width (m)"},
    "MODPLAN_GRID_HEIGHT_M": {"default": cfg.DEFAULT_GRID_HEIGHT_M, "description": "Grid height (m)"},
}

_PROFILES: dict[str, dict[str, str]] = {
    "development": {
        "MODPLAN_ENV": "development",
        "MODPLAN_LOG_LEVEL": "DEBUG",
    },
    "production": {
        "MODPLAN_ENV": "production",
        "MODPLAN_LOG_LEVEL": "WARNING",
    },
    "testing": {
        "MODPLAN_ENV": "testing",
        "MODPLAN_LOG_LEVEL": "DEBUG",
        "MODPLAN_SNAP_MODE": "off",
    },
}


class EditorSettings(BaseModel):
    """Read-only configuration consumed by the geometry core."""

    scale_factor: float = Field(default=cfg.DEFAULT_SCALE_FACTOR, gt=0)
    grid_size_mm: int = Field(default=cfg.DEFAULT_GRID_SIZE_MM, gt=0)
    snap_mode: Literal["off", "grid", "element"] = cfg.DEFAULT_SNAP_MODE
    element_gap_mm: int = Field(default=cfg.DEFAULT_ELEMENT_GAP_MM, ge=0)
    grid_width_m: float = Field(default=cfg.DEFAULT_GRID_WIDTH_M, gt=0)
    grid_height_m: float = Field(default=cfg.DEFAULT_GRID_HEIGHT_M, gt=0)
    log_level: str = "INFO"


class SettingsManager:
    """Load editor settings across environments."""

    def generate_env_template(self, project_path: str | Path) -> Path:
        """Create .env.example with all config keys.

        Returns the path to the generated file.
        """
        root = Path(project_path)
        env_path = root / ".env.example"

        lines = ["# modplan configuration template", "# Copy to .env and fill in values", ""]
        for key, info in _CONFIG_KEYS.items():
            lines.append(f"# {info['description']}")
            lines.append(f"{key}={info['default']}")
            lines.append("")

        env_path.write_text("\n".join(lines), encoding="utf-8")
        return env_path

    def load_config(self, project_path: str | Path) -> dict[str, str]:
        """Load merged config: defaults -> profile -> config.json -> .env -> env vars.

        Returns a flat dict of configuration values.
        """
        root = Path(project_path)
        config: dict[str, str] = {}

        # 1. Defaults
        for key, info in _CONFIG_KEYS.items():
            config[key] = str(info["default"])

        # 2. Profile overrides
        env_name = os.environ.get("MODPLAN_ENV", config.get("MODPLAN_ENV", "development"))
        config.update(_PROFILES.get(env_name, {}))

        # 3. .modplan/config.json
        config_json = root / ".modplan" / "config.json"
        if config_json.is_file():
            try:
                data = json.loads(config_json.read_text(encoding="utf-8"))
                for k, v in data.items():
                    config[k] = str(v)
            except (json.JSONDecodeError, OSError):
                logger.debug("Could not read config.json", exc_info=True)

        # 4. .env file
        env_file = root / ".env"
        if env_file.is_file():
            try:
                for line in env_file.read_text(encoding="utf-8").splitlines():
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" in line:
                        k, v = line.split("=", 1)
                        config[k.strip()] = v.strip()
            except OSError:
                logger.debug("Could not read .env", exc_info=True)

        # 5. Environment variables override all
        for key in _CONFIG_KEYS:
            env_val = os.environ.get(key)
            if env_val is not None:
                config[key] = env_val

        return config

    def load_settings(self, project_path: str | Path) -> EditorSettings:
        """Return validated :class:`EditorSettings` for *project_path*.

        Raises ``pydantic.ValidationError`` when a value is out of range
        (e.g. a non-positive scale factor).
        """
        config = self.load_config(project_path)
        return EditorSettings(
            scale_factor=config["MODPLAN_SCALE_FACTOR"],
            grid_size_mm=config["MODPLAN_GRID_SIZE_MM"],
            snap_mode=config["MODPLAN_SNAP_MODE"],
            element_gap_mm=config["MODPLAN_ELEMENT_GAP_MM"],
            grid_width_m=config["MODPLAN_GRID_WIDTH_M"],
            grid_height_m=config["MODPLAN_GRID_HEIGHT_M"],
            log_level=config["MODPLAN_LOG_LEVEL"].upper(),
        )

    def apply_log_level(self, settings: EditorSettings) -> None:
        """Set the level of the ``modplan`` logger from *settings*."""
        level = logging.getLevelName(settings.log_level)
        if not isinstance(level, int):
            logger.warning("Unknown log level %r, keeping current level", settings.log_level)
            return
        logging.getLogger("modplan").setLevel(level)
