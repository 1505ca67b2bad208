from __future__ import annotations

import json
import os
import threading
from pathlib import Path

from nodemesh.log import logger

# In-memory config (loaded once, protected by lock)
_config = None
_config_lock = threading.Lock()

# Environment variable -> (section, key, parser)
_ENV_OVERRIDES: list[tuple[str, str, str, str]] = [
    ("GROQ_API_KEY", "llm", "api_key", "str"),
    ("NODEMESH_LLM_BASE_URL", "llm", "base_url", "str"),
    ("NODEMESH_MODEL", "llm", "model", "str"),
    ("NODEMESH_FALLBACK_MODELS", "llm", "fallback_models", "list"),
    ("NODEMESH_LLM_DISABLED", "llm", "enabled", "disabled"),
    ("NODEMESH_TIMEOUT", "llm", "timeout_seconds", "float"),
    ("NODEMESH_TIMEOUT", "weather", "timeout_seconds", "float"),
    ("NODEMESH_TIMEOUT", "news", "timeout_seconds", "float"),
    ("NODEMESH_RATE_LIMIT_COOLDOWN", "llm", "rate_limit_cooldown_seconds", "float"),
    ("NODEMESH_MAX_TURNS", "memory", "max_turns", "int"),
    ("NODEMESH_MAX_SESSIONS", "memory", "max_sessions", "int"),
    ("WEATHER_API_KEY", "weather", "api_key", "str"),
    ("NEWS_API_KEY", "news", "api_key", "str"),
    ("NODEMESH_NEWS_REGION", "news", "default_region", "str"),
]

_TRUTHY = {"1", "true", "yes", "on"}


def get_config() -> dict:
    """Get the merged config: shipped defaults < user file < environment.

    Double-check pattern ensures only one thread builds the config; after
    that the dict is never mutated, so the lock-free fast path is safe.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is not None:
            return _config

        result = _load_defaults()

        user = _load_user_file()
        if user:
            result = _merge(result, user)

        result = _apply_env(result)
        _config = result
        return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads everything. Mainly for testing."""
    global _config
    with _config_lock:
        _config = None


def get_llm_config() -> dict:
    return get_config().get("llm", {})


def get_memory_config() -> dict:
    return get_config().get("memory", {})


def get_weather_config() -> dict:
    return get_config().get("weather", {})


def get_news_config() -> dict:
    return get_config().get("news", {})


def get_chat_config() -> dict:
    return get_config().get("chat", {})


def _load_defaults() -> dict:
    try:
        defaults_path = Path(__file__).parent / "defaults.json"
        with open(defaults_path, "r") as f:
            return json.load(f)
    except Exception:
        logger.warning("Failed to load defaults.json, using minimal hardcoded config")
        return {
            "llm": {"enabled": False, "fallback_models": []},
            "memory": {"max_turns": 6, "max_sessions": 0},
            "weather": {},
            "news": {},
            "chat": {"max_message_chars": 2000},
        }


def _user_file_path() -> Path:
    override = os.environ.get("NODEMESH_CONFIG")
    if override:
        return Path(override)
    home = os.environ.get("NODEMESH_HOME")
    base = Path(home) if home else Path.home() / ".nodemesh"
    return base / "config.json"


def _load_user_file() -> dict | None:
    path = _user_file_path()
    try:
        if not path.exists():
            return None
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            logger.warning("User config %s is not a JSON object, ignoring", path)
            return None
        return data
    except Exception:
        logger.warning("Failed to load user config from %s", path, exc_info=True)
        return None


def _apply_env(config: dict) -> dict:
    """Overlay recognised environment variables. Unparseable values are skipped."""
    result = {section: dict(values) if isinstance(values, dict) else values
              for section, values in config.items()}
    for env_name, section, key, kind in _ENV_OVERRIDES:
        raw = os.environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        raw = raw.strip()
        try:
            if kind == "int":
                value: object = int(raw)
            elif kind == "float":
                value = float(raw)
            elif kind == "list":
                value = [item.strip() for item in raw.split(",") if item.strip()]
            elif kind == "disabled":
                value = raw.lower() not in _TRUTHY
            else:
                value = raw
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", env_name, raw, kind)
            continue
        result.setdefault(section, {})[key] = value
    return result


def _merge(base: dict, override: dict, depth: int = 0) -> dict:
    """Deep merge override into base. Override values win.

    Args:
        base: The base dict to merge into.
        override: The override dict whose values win on conflict.
        depth: Current recursion depth. Stops recursing at 10.
    """
    _MAX_MERGE_DEPTH = 10
    result = base.copy()
    for key, value in override.items():
        if key.startswith("_"):
            continue
        if (
            depth < _MAX_MERGE_DEPTH
            and key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = _merge(result[key], value, depth=depth + 1)
        else:
            result[key] = value
    return result
