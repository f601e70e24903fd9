from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from core.crop import DEFAULT_EDGE_TOLERANCE, DEFAULT_MIN_CROP_SIZE
from core.history import DEFAULT_MAX_HISTORY


CONFIG_VERSION = 1
CONFIG_ENV_VAR = "RASTEREDIT_CONFIG"


class ConfigError(ValueError):
    pass


@dataclass
class EditorConfig:
    max_history: int = DEFAULT_MAX_HISTORY
    crop_edge_tolerance: float = DEFAULT_EDGE_TOLERANCE
    crop_min_size: float = DEFAULT_MIN_CROP_SIZE
    high_quality_resample: bool = True
    export_format: str = "PNG"
    export_quality: int = 95
    log_level: str = "INFO"


def get_app_data_dir() -> Path:
    app_data = os.getenv("APPDATA")
    if app_data:
        return Path(app_data) / "rasteredit"
    return Path.home() / ".rasteredit"


def default_config_path() -> Path:
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return get_app_data_dir() / "config.json"


def _config_from_raw(raw: dict) -> EditorConfig:
    defaults = EditorConfig()
    try:
        return EditorConfig(
            max_history=max(1, int(raw.get("max_history", defaults.max_history))),
            crop_edge_tolerance=max(0.0, float(raw.get("crop_edge_tolerance", defaults.crop_edge_tolerance))),
            crop_min_size=max(1.0, float(raw.get("crop_min_size", defaults.crop_min_size))),
            high_quality_resample=bool(raw.get("high_quality_resample", defaults.high_quality_resample)),
            export_format=str(raw.get("export_format", defaults.export_format)).strip().upper(),
            export_quality=max(1, min(100, int(raw.get("export_quality", defaults.export_quality)))),
            log_level=str(raw.get("log_level", defaults.log_level)).strip().upper(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid editor config value: {e}") from e


def _config_to_raw(config: EditorConfig) -> dict:
    return {
        "max_history": int(config.max_history),
        "crop_edge_tolerance": float(config.crop_edge_tolerance),
        "crop_min_size": float(config.crop_min_size),
        "high_quality_resample": bool(config.high_quality_resample),
        "export_format": config.export_format,
        "export_quality": int(config.export_quality),
        "log_level": config.log_level,
    }


def load_config(path: str | None = None) -> EditorConfig:
    config_file = Path(path) if path else default_config_path()
    if not config_file.exists():
        return EditorConfig()
    try:
        raw = json.loads(config_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{config_file}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_file}: expected a JSON object")
    editor_raw = raw.get("editor", {})
    if not isinstance(editor_raw, dict):
        raise ConfigError(f"{config_file}: 'editor' must be an object")
    return _config_from_raw(editor_raw)


def save_config(path: str, config: EditorConfig) -> None:
    config_file = Path(path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    payload = {"version": CONFIG_VERSION, "editor": _config_to_raw(config)}
    config_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
