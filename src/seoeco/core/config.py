"""3-layer configuration system for seoeco.

Loads and merges configuration from:
1. Default settings (built-in)
2. User config (~/.seoeco/config.yaml or an explicit path)
3. Environment variables (SEOECO_API_URL, SEOECO_DEMO_VIDEO_URL)
4. CLI parameters (override)
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = Path.home() / ".seoeco" / "config.yaml"

DEFAULT_CONFIG: dict = {
    "api": {
        "url": "http://localhost:3001/api",
        "timeout_seconds": 30,
    },
    "stream": {
        "retry_attempts": 3,
        "retry_delay_seconds": 2,
        "connect_timeout_seconds": 10,
    },
    "auth": {
        "store_path": "~/.seoeco/auth.json",
    },
    "media": {
        "demo_video_url": "",
    },
    "logging": {
        "level": "WARNING",
        "file": "~/.seoeco/seoeco.log",
    },
}

ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SEOECO_API_URL": ("api", "url"),
    "SEOECO_DEMO_VIDEO_URL": ("media", "demo_video_url"),
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_config_file(config_path: Optional[Path] = None) -> dict:
    """Load a YAML config file. Missing or unreadable files give {}."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        content = path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def get_env_overrides(environ: Optional[dict] = None) -> dict:
    """Collect config overrides from SEOECO_* environment variables."""
    env = os.environ if environ is None else environ
    overrides: dict = {}
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            overrides.setdefault(section, {})[key] = value
    return overrides


def get_effective_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
    environ: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    file_config = load_config_file(config_path)
    if file_config:
        config = deep_merge(config, file_config)

    env_config = get_env_overrides(environ)
    if env_config:
        config = deep_merge(config, env_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["api"]["url"] = str(config["api"].get("url", "")).rstrip("/")
    return config


def get_api_url(config: dict) -> str:
    return config.get("api", {}).get("url") or DEFAULT_CONFIG["api"]["url"]


def get_auth_store_path(config: dict) -> Path:
    raw = config.get("auth", {}).get("store_path") or DEFAULT_CONFIG["auth"]["store_path"]
    return Path(os.path.expanduser(raw))
