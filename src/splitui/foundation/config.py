"""SplitUI configuration management.

Loads configuration from .splitui/config.yaml with sensible defaults.
All settings can be overridden via environment variables (SPLITUI_*).

Config locations (in priority order):
1. Environment variables (SPLITUI_SECTION_KEY)
2. Explicit path passed to load_config()
3. .splitui/config.yaml (project-local)
4. ~/.splitui/config.yaml (user-global)
5. Built-in defaults

Every file that exists is merged over the layers below it, so a project file
only needs the keys it changes.

Thread Safety:
    Uses threading.Lock for thread-safe lazy initialization.
"""

import logging
import os
import threading
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from splitui.foundation.errors import ErrorCode, config_error

logger = logging.getLogger(__name__)

PROVIDERS = ("auto", "anthropic", "bedrock", "http", "mock")


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    """Auto-promotion tuning for the dispatch controller."""

    promotion_threshold: float = 0.8
    """Minimum certainty before a summary starts counting down to full view."""

    countdown_ticks: int = 3
    """Number of ticks before auto-promotion."""

    tick_seconds: float = 1.0
    """Length of one countdown tick."""


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Model transport defaults."""

    provider: str = "auto"
    """One of: auto, anthropic, bedrock, http, mock.

    `auto` picks a provider from the credentials found in the environment.
    """

    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 1024

    base_url: str = "http://localhost:3001"
    """Proxy server used by the http provider."""

    aws_region: str = "us-east-1"
    bedrock_model: str = "anthropic.claude-sonnet-4-5-20250929-v1:0"

    request_timeout: float = 60.0


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Durable record storage."""

    data_dir: str = ".splitui"


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Proxy server binding."""

    host: str = "127.0.0.1"
    port: int = 3001


@dataclass(frozen=True, slots=True)
class SplitUIConfig:
    """Root configuration for SplitUI."""

    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    debug: bool = False
    """Enable debug logging by default."""


_SECTIONS: dict[str, type] = {
    "dispatch": DispatchConfig,
    "model": ModelConfig,
    "store": StoreConfig,
    "server": ServerConfig,
}

# Global config instance (lazy-loaded, thread-safe)
_config: SplitUIConfig | None = None
_config_lock = threading.Lock()


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce_env_value(value: str) -> Any:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply environment variable overrides.

    Environment variables follow pattern: SPLITUI_SECTION_KEY, where KEY may
    itself contain underscores.

    Examples:
        SPLITUI_DISPATCH_PROMOTION_THRESHOLD=0.9
        SPLITUI_MODEL_PROVIDER=http
        SPLITUI_DEBUG=true
    """
    prefix = "SPLITUI_"
    env = os.environ if environ is None else environ

    for key, value in env.items():
        if not key.startswith(prefix):
            continue

        path_str = key[len(prefix):].lower()

        if path_str == "debug":
            config_dict["debug"] = _coerce_env_value(value)
            continue

        for section, section_type in _SECTIONS.items():
            if not path_str.startswith(section + "_"):
                continue
            name = path_str[len(section) + 1:]
            known = {f.name for f in fields(section_type)}
            if name in known:
                config_dict.setdefault(section, {})[name] = _coerce_env_value(value)
            break

    return config_dict


def _build_section(section_type: type, data: Any, section: str) -> Any:
    if not isinstance(data, dict):
        raise config_error(ErrorCode.CONFIG_INVALID, key=section, detail="expected a mapping")
    known = {f.name for f in fields(section_type)}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown %s config keys: %s", section, ", ".join(sorted(unknown)))
    return section_type(**{k: v for k, v in data.items() if k in known})


def _validate(config: SplitUIConfig) -> None:
    dispatch = config.dispatch
    if not 0.0 <= float(dispatch.promotion_threshold) <= 1.0:
        raise config_error(
            ErrorCode.CONFIG_INVALID,
            key="dispatch.promotion_threshold",
            detail=f"must be within 0..1, got {dispatch.promotion_threshold}",
        )
    if int(dispatch.countdown_ticks) < 1:
        raise config_error(
            ErrorCode.CONFIG_INVALID,
            key="dispatch.countdown_ticks",
            detail=f"must be positive, got {dispatch.countdown_ticks}",
        )
    if float(dispatch.tick_seconds) <= 0:
        raise config_error(
            ErrorCode.CONFIG_INVALID,
            key="dispatch.tick_seconds",
            detail=f"must be positive, got {dispatch.tick_seconds}",
        )
    if config.model.provider not in PROVIDERS:
        raise config_error(
            ErrorCode.CONFIG_INVALID,
            key="model.provider",
            detail=f"unknown provider '{config.model.provider}' (available: {', '.join(PROVIDERS)})",
        )


def _dict_to_config(data: dict) -> SplitUIConfig:
    """Convert a dict to SplitUIConfig."""
    sections = {
        name: _build_section(section_type, data.get(name, {}), name)
        for name, section_type in _SECTIONS.items()
    }
    config = SplitUIConfig(**sections, debug=bool(data.get("debug", False)))
    _validate(config)
    return config


def _read_config_file(config_path: Path) -> dict[str, Any]:
    try:
        file_config = yaml.safe_load(config_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise config_error(
            ErrorCode.CONFIG_INVALID, key=str(config_path), detail=str(e)
        ) from e
    if not isinstance(file_config, dict):
        raise config_error(
            ErrorCode.CONFIG_INVALID, key=str(config_path), detail="expected a mapping"
        )
    return file_config


def load_config(path: str | Path | None = None) -> SplitUIConfig:
    """Load configuration from file with defaults and env overrides.

    Layers, lowest first: defaults, ~/.splitui/config.yaml,
    ./.splitui/config.yaml, the explicit `path`, then SPLITUI_* variables.
    Each file only overrides the keys it sets.

    Args:
        path: Optional explicit config file path. It must exist.

    Returns:
        Merged SplitUIConfig instance.

    Raises:
        SplitUIError: CONFIG_INVALID when a file is missing or unreadable, or
            a value is out of range.
    """
    global _config

    config_dict: dict[str, Any] = asdict(SplitUIConfig())

    config_paths = [
        Path.home() / ".splitui" / "config.yaml",
        Path(".splitui/config.yaml"),
    ]
    if path:
        explicit = Path(path)
        if not explicit.is_file():
            raise config_error(
                ErrorCode.CONFIG_INVALID, key=str(explicit), detail="config file not found"
            )
        config_paths.append(explicit)

    for config_path in config_paths:
        if not config_path.is_file():
            continue
        _deep_update(config_dict, _read_config_file(config_path))
        logger.debug("Loaded config from %s", config_path)

    config_dict = _apply_env_overrides(config_dict)

    with _config_lock:
        _config = _dict_to_config(config_dict)
        return _config


def get_config() -> SplitUIConfig:
    """Get the current configuration, loading if needed."""
    if _config is not None:
        return _config
    return load_config()


def reset_config() -> None:
    """Reset global config (for testing)."""
    global _config
    with _config_lock:
        _config = None
