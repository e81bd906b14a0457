"""Configuration loader.

Loads configuration from a JSON file and the environment:
- ${ENV_VAR} substitution inside string values
- optional dotenv file loaded before substitution
- A2UI_* environment variables override file values
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .schema import A2UIEngineConfig

logger = logging.getLogger(__name__)

_cached_config: Optional[A2UIEngineConfig] = None

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "A2UI_MAX_RETRIES": ("retry", "max_retries"),
    "A2UI_RETRY_DELAY_MS": ("retry", "retry_delay_ms"),
    "A2UI_BACKOFF": ("retry", "backoff"),
    "A2UI_AUTO_SURFACE_IDS": ("router", "auto_surface_ids"),
    "A2UI_DEFAULT_SURFACE_ID": ("router", "default_surface_id"),
    "A2UI_TRANSPORT_URL": ("transport", "url"),
    "A2UI_OPEN_TIMEOUT": ("transport", "open_timeout"),
    "A2UI_AUTH_TOKEN": ("transport", "auth_token"),
    "A2UI_PRUNE_DELETED": ("surface", "prune_deleted"),
    "A2UI_MAX_RENDER_DEPTH": ("surface", "max_render_depth"),
}

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _substitute_env_vars(obj: Any) -> Any:
    """Recursively replace ${VAR} with os.environ values; unknown tokens are kept"""
    if isinstance(obj, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(v) for v in obj]
    return obj


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    result = {k: dict(v) if isinstance(v, dict) else v for k, v in config_dict.items()}
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        target = result.get(section)
        if not isinstance(target, dict):
            target = {}
            result[section] = target
        target[key] = value
    return result


def _resolve_config_path(config_path: Optional[str | Path]) -> Optional[Path]:
    if config_path:
        return Path(config_path)

    env_path = os.environ.get("A2UI_CONFIG")
    if env_path:
        return Path(env_path)

    candidates = [
        Path.cwd() / "a2ui.json",
        Path.home() / ".a2ui" / "config.json",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config_raw(path: Path) -> dict[str, Any]:
    """Load a config file with env-var substitution (not yet validated)"""
    obj = json.loads(path.read_text(encoding="utf-8"))
    obj = _substitute_env_vars(obj)
    return obj if isinstance(obj, dict) else {}


def load_config(
    config_path: Optional[str | Path] = None,
    env_file: Optional[str | Path] = None,
) -> A2UIEngineConfig:
    """Load engine configuration.

    Args:
        config_path: Optional path to a JSON config file
        env_file: Optional dotenv file loaded into the environment first

    Returns:
        Validated configuration; defaults when the file is missing or invalid
    """
    global _cached_config

    if _cached_config is not None:
        return _cached_config

    if env_file:
        if Path(env_file).exists():
            load_dotenv(env_file, override=True)
        else:
            logger.warning(f"env file not found: {env_file}")

    config_dict: dict[str, Any] = {}
    path = _resolve_config_path(config_path)

    if path and path.exists():
        try:
            config_dict = load_config_raw(path)
            logger.debug(f"Loaded config from {path}")
        except Exception as exc:
            logger.warning(f"Failed to load config from {path}: {exc}")
    elif path:
        logger.warning(f"Config file not found: {path}")

    config_dict = _apply_env_overrides(config_dict)

    try:
        config_obj = A2UIEngineConfig(**config_dict)
    except Exception as exc:
        logger.warning(f"Failed to parse config: {exc}")
        config_obj = A2UIEngineConfig()

    _cached_config = config_obj
    return config_obj


def invalidate_config_cache() -> None:
    """Invalidate the in-process config cache so the next load_config() re-reads disk."""
    global _cached_config
    _cached_config = None


__all__ = [
    "ENV_OVERRIDES",
    "load_config",
    "load_config_raw",
    "invalidate_config_cache",
]
