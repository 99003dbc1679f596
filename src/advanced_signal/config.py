"""Process-wide default settings for signals."""
from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ConfigurationError
from .logging import get_logger, log_event

LOGGER = get_logger("config")

CONFIG_ENV_VAR = "ADVANCED_SIGNAL_CONFIG"
DEFAULT_CONFIG_FILENAMES = (
    "advanced_signal.json",
    "advanced_signal.yaml",
    "advanced_signal.yml",
)
SECTION_NAMES = ("AdvancedSignal", "advanced_signal")

# Accepted spellings in the external file mapped onto model fields
_OPTION_ALIASES: Dict[str, str] = {
    "yieldable": "yieldable",
    "keepOrder": "keep_order",
    "keep_order": "keep_order",
}


class SignalSettings(BaseModel):
    """Defaults applied when a :class:`~advanced_signal.signals.Signal` is built without explicit flags."""

    model_config = ConfigDict(frozen=True)

    yieldable: bool = Field(
        default=True,
        description="Dispatch callbacks to the callback scheduler so a blocking listener never holds up fire().",
    )
    keep_order: bool = Field(
        default=False,
        description="Deliver to listeners in the order they were bound.",
    )


def _read_source(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read settings file {path}: {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Malformed settings file {path}: {exc}") from exc


def _locate_source(path: Path | None, environ: Mapping[str, str]) -> Path | None:
    if path is not None:
        return path
    override = environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    for filename in DEFAULT_CONFIG_FILENAMES:
        candidate = Path.cwd() / filename
        if candidate.is_file():
            return candidate
    return None


def settings_from_mapping(raw: Mapping[str, Any]) -> SignalSettings:
    """Build :class:`SignalSettings` from the ``AdvancedSignal`` section of ``raw``.

    Only boolean values override the defaults. Anything else is ignored so a
    half-filled or mistyped file still yields usable settings.
    """

    section: Any = None
    for name in SECTION_NAMES:
        if name in raw:
            section = raw[name]
            break
    if section is None:
        return SignalSettings()
    if not isinstance(section, Mapping):
        LOGGER.warning("Ignoring non-mapping settings section: %r", section)
        return SignalSettings()

    overrides: Dict[str, bool] = {}
    for key, value in section.items():
        field_name = _OPTION_ALIASES.get(key)
        if field_name is None:
            continue
        if not isinstance(value, bool):
            LOGGER.warning("Ignoring non-boolean value for %s: %r", key, value)
            continue
        overrides[field_name] = value
    return SignalSettings(**overrides)


def load_settings(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> SignalSettings:
    """Load settings from ``path`` or the first discoverable settings file.

    A missing source is not an error; the built-in defaults apply. A source
    that exists but cannot be parsed raises :class:`ConfigurationError`.
    """

    environ = os.environ if environ is None else environ
    source = _locate_source(path, environ)
    if source is None or not source.exists():
        log_event(LOGGER, "settings_loaded", {"source": None})
        return SignalSettings()

    raw = _read_source(source)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Settings file {source} must contain a mapping")

    settings = settings_from_mapping(raw)
    log_event(
        LOGGER,
        "settings_loaded",
        {"source": str(source), **settings.model_dump()},
    )
    return settings


@lru_cache(maxsize=1)
def get_default_settings() -> SignalSettings:
    """Return the process defaults, consulting the external source on first use only."""

    return load_settings()


def reset_default_settings() -> None:
    """Forget cached defaults so the next lookup reloads them."""

    get_default_settings.cache_clear()


__all__ = [
    "CONFIG_ENV_VAR",
    "SignalSettings",
    "get_default_settings",
    "load_settings",
    "reset_default_settings",
    "settings_from_mapping",
]
