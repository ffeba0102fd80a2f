"""Settings for reaching the AI endpoint, from env vars and an optional YAML file."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .assistant.errors import ConfigurationError

DEFAULT_TIMEOUT = 20.0
DEFAULT_MAX_RETRIES = 0

_ENV_PREFIX = "FEEDBACK_ASSISTANT_"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def get_default_config_path() -> Path:
    return Path("~/.config/feedback-assistant/config.yaml").expanduser()


def get_default_token_path() -> Path:
    return Path("~/.config/feedback-assistant/token").expanduser()


@dataclass(frozen=True)
class AssistantSettings:
    endpoint_url: Optional[str] = None
    anon_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    pro: bool = False
    token_path: Optional[Path] = None

    def require_endpoint(self) -> None:
        if not self.endpoint_url:
            raise ConfigurationError(
                "AI endpoint URL not configured. Set FEEDBACK_ASSISTANT_URL or 'endpoint_url' in the config file."
            )
        if not self.anon_key:
            raise ConfigurationError(
                "Public API key not configured. Set FEEDBACK_ASSISTANT_ANON_KEY or 'anon_key' in the config file."
            )


def load_config_file(path: Path) -> Dict[str, Any]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> AssistantSettings:
    """Merge defaults, the YAML file, environment variables and explicit overrides."""

    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    file_values = load_config_file(config_path or get_default_config_path())
    for key in ("endpoint_url", "anon_key", "timeout", "max_retries", "pro", "token_path"):
        if key in file_values and file_values[key] is not None:
            values[key] = file_values[key]

    for key in ("endpoint_url", "anon_key", "timeout", "max_retries", "pro", "token_path"):
        env_name = _ENV_PREFIX + ("URL" if key == "endpoint_url" else key.upper())
        raw = env.get(env_name)
        if raw is not None and raw.strip():
            values[key] = raw.strip()

    for key, value in overrides.items():
        if value is not None:
            values[key] = value

    return _coerce(AssistantSettings(), values)


def _coerce(settings: AssistantSettings, values: Mapping[str, Any]) -> AssistantSettings:
    changes: Dict[str, Any] = {}
    if "endpoint_url" in values:
        changes["endpoint_url"] = str(values["endpoint_url"]).strip() or None
    if "anon_key" in values:
        changes["anon_key"] = str(values["anon_key"]).strip() or None
    if "timeout" in values:
        try:
            timeout = float(values["timeout"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid timeout: {values['timeout']!r}") from exc
        if timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        changes["timeout"] = timeout
    if "max_retries" in values:
        try:
            changes["max_retries"] = max(0, int(values["max_retries"]))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid max_retries: {values['max_retries']!r}") from exc
    if "pro" in values:
        changes["pro"] = _parse_bool(values["pro"])
    if "token_path" in values:
        changes["token_path"] = Path(str(values["token_path"])).expanduser()
    return replace(settings, **changes)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value: {value!r}")
