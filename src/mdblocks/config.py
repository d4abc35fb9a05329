"""Application configuration: settings schema and mdblocks.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


ENV_PREFIX = "MDBLOCKS_"
CONFIG_ENV = "MDBLOCKS_CONFIG"
CONFIG_FILE = "mdblocks.yaml"


class Settings(BaseModel):
    app_name:          str   = "mdblocks"
    parser_config:     str   = Field(default="gfm-like", description="MarkdownIt parser preset name")
    debounce_ms:       int   = Field(default=200,  ge=0,  description="Debounce window per compile direction")
    request_timeout_s: float = Field(default=10.0, gt=0,  description="Seconds before a dispatched compile is rejected")
    p50_target_ms:     float = Field(default=200.0, gt=0, description="Median round-trip latency target")
    p95_target_ms:     float = Field(default=500.0, gt=0, description="95th percentile round-trip latency target")
    metrics_window:    int   = Field(default=1000, ge=1,  description="Latency samples kept for percentiles")
    log_level:         str   = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def _file_values(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid {path.name}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {path.name}: expected a mapping of settings")
    return data


def _env_values() -> dict[str, str]:
    """Non-empty MDBLOCKS_<FIELD> variables keyed by field name."""
    found = {}
    for name in Settings.model_fields:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw:
            found[name] = raw
    return found


def load_config(overrides: dict[str, Any] = None, path: Optional[Path] = None) -> Settings:
    """Merge mdblocks.yaml (or $MDBLOCKS_CONFIG), MDBLOCKS_<FIELD> env vars, then non-None overrides."""
    config_path = path or Path(os.getenv(CONFIG_ENV) or CONFIG_FILE)
    data = {**_file_values(config_path), **_env_values()}
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        return Settings(**data)
    except ValueError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
