"""
sentiscope/config.py
Runtime configuration. Persists to sentiscope_config.json.

Precedence (last wins): DEFAULT_CONFIG → sentiscope_config.json →
SENTISCOPE_* environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from sentiscope.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "sentiscope_config.json"

DEFAULT_CONFIG = {
    "model":            "llama3.1:8b",
    "ollama_host":      "http://localhost:11434",
    "timeout_sec":      120,
    "temperature":      0.3,
    "max_file_size":    10 * 1024 * 1024,
    "max_export_limit": 10000,
    "store_backend":    "memory",
    "db_path":          "sentiscope.db",
    "language":         "es",
    "extractor":        "pdf",
}

STORE_BACKENDS = ("memory", "sqlite")
EXTRACTORS     = ("pdf", "text")

# env var → (config key, converter)
ENV_OVERRIDES: Dict[str, tuple] = {
    "SENTISCOPE_MODEL":            ("model",            str),
    "SENTISCOPE_OLLAMA_HOST":      ("ollama_host",      str),
    "SENTISCOPE_TIMEOUT_SEC":      ("timeout_sec",      int),
    "SENTISCOPE_TEMPERATURE":      ("temperature",      float),
    "SENTISCOPE_MAX_FILE_SIZE":    ("max_file_size",    int),
    "SENTISCOPE_MAX_EXPORT_LIMIT": ("max_export_limit", int),
    "SENTISCOPE_STORE_BACKEND":    ("store_backend",    str),
    "SENTISCOPE_DB_PATH":          ("db_path",          str),
    "SENTISCOPE_LANGUAGE":         ("language",         str),
    "SENTISCOPE_EXTRACTOR":        ("extractor",        str),
}


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return root / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from sentiscope_config.json. Returns defaults if missing."""
    path = _config_path(project_root)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return {**DEFAULT_CONFIG, **data}
            logger.warning(f"Config file {path} is not a JSON object, ignoring it")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Config load failed: {e}")
    return dict(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """Persist config to sentiscope_config.json."""
    path = _config_path(project_root)
    path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return path


def apply_env_overrides(
    config: Dict[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    merged = dict(config)
    for var, (key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            merged[key] = convert(raw)
        except ValueError:
            raise ConfigError(f"{var} has an invalid value: {raw!r}") from None
    return merged


def _positive(config: Dict[str, Any], key: str, kind: Callable = int) -> None:
    value = config.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{key} must be a positive number (got {value!r})")
    config[key] = kind(value)


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Check types and ranges. Returns a normalised copy; raises ConfigError."""
    checked = dict(config)

    for key in ("model", "ollama_host", "db_path", "language"):
        value = checked.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"{key} cannot be empty")

    _positive(checked, "timeout_sec")
    _positive(checked, "max_file_size")
    _positive(checked, "max_export_limit")

    temp = checked.get("temperature")
    if isinstance(temp, bool) or not isinstance(temp, (int, float)) or not 0 <= temp <= 2:
        raise ConfigError(f"temperature must be between 0 and 2 (got {temp!r})")
    checked["temperature"] = float(temp)

    if checked.get("store_backend") not in STORE_BACKENDS:
        raise ConfigError(
            f"store_backend must be one of {', '.join(STORE_BACKENDS)} "
            f"(got {checked.get('store_backend')!r})"
        )
    if checked.get("extractor") not in EXTRACTORS:
        raise ConfigError(
            f"extractor must be one of {', '.join(EXTRACTORS)} "
            f"(got {checked.get('extractor')!r})"
        )
    return checked


def ensure_config(
    project_root: Optional[Path]               = None,
    environ:      Optional[Mapping[str, str]]  = None,
) -> Dict[str, Any]:
    """
    Load file config, apply environment overrides and validate.
    Returns the effective config.
    """
    config = validate_config(apply_env_overrides(load_config(project_root), environ))
    logger.debug(
        f"Config loaded | backend={config['store_backend']} | "
        f"extractor={config['extractor']} | model={config['model']}"
    )
    return config
