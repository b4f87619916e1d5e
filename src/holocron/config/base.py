"""
Shared configuration helpers and settings for the Holocron voice client.

Defaults live in ``config/defaults.toml`` and can be overridden via environment
variables (optionally stored in the project's ``.env``) or CLI flags.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import tomllib
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULTS_PATH = PROJECT_ROOT / "config" / "defaults.toml"
ENV_PATH = PROJECT_ROOT / ".env"

load_dotenv(ENV_PATH)

if not DEFAULTS_PATH.exists():  # pragma: no cover - configuration issue
    raise FileNotFoundError(
        f"Missing configuration defaults at {DEFAULTS_PATH}. Ensure config/defaults.toml exists."
    )

with DEFAULTS_PATH.open("rb") as defaults_file:
    _DEFAULTS = tomllib.load(defaults_file)


def _coerce_path(value: str | Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (PROJECT_ROOT / path).resolve()
    return path


def _env_bool(name: str, default: bool = False) -> bool:
    """Return True when the env var is set to a truthy value."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        _warn_invalid_env_value(name, value, default)
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        _warn_invalid_env_value(name, value, default)
        return default


def _env_path(name: str, default: str) -> Path:
    raw = os.getenv(name, default)
    return _coerce_path(raw)


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in choices:
        return normalized
    _warn_invalid_env_value(name, value, default)
    return default


def _normalize_base_url(value: str | None) -> str:
    """Return the endpoint base without surrounding whitespace or trailing slashes."""

    if not value:
        return ""
    return value.strip().rstrip("/")


def _persist_env_value(key: str, value: str) -> bool:
    """Write or update a key=value entry in the repo's .env file, returning True on success."""

    existing_lines: list[str] = []
    replaced = False

    if ENV_PATH.exists():
        try:
            existing_lines = ENV_PATH.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            sys.stderr.write(f"Unable to read {ENV_PATH}: {exc}\n")
            return False

    new_lines: list[str] = []
    for line in existing_lines:
        if line.startswith(f"{key}="):
            new_lines.append(f"{key}={value}")
            replaced = True
        else:
            new_lines.append(line)

    if not replaced:
        new_lines.append(f"{key}={value}")

    contents = "\n".join(new_lines).rstrip()
    try:
        ENV_PATH.write_text((contents + "\n") if contents else "\n", encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"Unable to write {ENV_PATH}: {exc}\n")
        return False
    return True


def _remove_env_keys(keys: tuple[str, ...]) -> set[str]:
    """Remove specified keys from .env and return the ones that existed."""

    if not keys:
        return set()

    existing_lines: list[str] = []
    if ENV_PATH.exists():
        existing_lines = ENV_PATH.read_text(encoding="utf-8").splitlines()

    removed: set[str] = set()
    trimmed_lines: list[str] = []
    for line in existing_lines:
        matched = next((key for key in keys if line.startswith(f"{key}=")), None)
        if matched:
            removed.add(matched)
        else:
            trimmed_lines.append(line)

    if existing_lines:
        new_contents = "\n".join(trimmed_lines).rstrip()
        ENV_PATH.write_text((new_contents + "\n") if new_contents else "", encoding="utf-8")

    for key in keys:
        os.environ.pop(key, None)

    return removed


def _warn_invalid_env_value(name: str, value: str | None, default: object) -> None:
    """Emit a warning when env overrides cannot be parsed."""

    sys.stderr.write(f"Invalid value for {name}={value!r}; falling back to {default!r}.\n")


_SAVED_ENV_KEYS: tuple[str, ...] = ("HOLOCRON_API_URL",)


def persist_api_url(api_url: str) -> bool:
    """Store the assistant endpoint in .env so later runs pick it up."""

    normalized = _normalize_base_url(api_url)
    if not normalized:
        return False
    if not _persist_env_value("HOLOCRON_API_URL", normalized):
        return False
    os.environ["HOLOCRON_API_URL"] = normalized
    return True


def reset_saved_settings() -> set[str]:
    """Clear settings saved through the CLI, returning the keys that were removed."""

    return _remove_env_keys(_SAVED_ENV_KEYS)


# Service Configuration
_SERVICE = _DEFAULTS["service"]
HOLOCRON_API_URL = _normalize_base_url(os.getenv("HOLOCRON_API_URL", _SERVICE.get("api_url", "")))
TALK_PATH = os.getenv("HOLOCRON_TALK_PATH", _SERVICE.get("talk_path", "/talk"))
REPLY_ACCEPT = os.getenv("HOLOCRON_REPLY_ACCEPT", _SERVICE.get("accept", "audio/mpeg"))
REQUEST_TIMEOUT_SECONDS = _env_float(
    "HOLOCRON_TIMEOUT_SECONDS", float(_SERVICE.get("timeout_seconds", 60.0))
)
ASSISTANT_CONTEXT = (os.getenv("HOLOCRON_CONTEXT") or _SERVICE.get("context", "")).strip()

# Audio Configuration
_AUDIO = _DEFAULTS["audio"]
SAMPLE_RATE = _env_int("SAMPLE_RATE", _AUDIO["sample_rate"])
CHANNELS = _env_int("CHANNELS", _AUDIO["channels"])
DTYPE = os.getenv("DTYPE", _AUDIO["dtype"])
AUDIO_INPUT_DEVICE = os.getenv("AUDIO_INPUT_DEVICE")
RECORDING_FILENAME = _AUDIO.get("recording_filename", "recording.wav")
RECORDING_MIME_TYPE = _AUDIO.get("recording_mime_type", "audio/wav")

# Platform Configuration
_PLATFORM = _DEFAULTS.get("platform", {})
PLATFORM_CHOICES: tuple[str, ...] = ("native", "web")
PLATFORM_NAME = _env_choice(
    "HOLOCRON_PLATFORM", _PLATFORM.get("name", "native"), PLATFORM_CHOICES
)
_CACHE_DIR_DEFAULT = _PLATFORM.get("cache_dir") or str(
    Path(tempfile.gettempdir()) / "holocron-cache"
)
CACHE_DIRECTORY = _env_path("HOLOCRON_CACHE_DIR", _CACHE_DIR_DEFAULT)
REPLY_FILENAME = _PLATFORM.get("reply_filename", "response.mp3")

_LOGGING = _DEFAULTS.get("logging", {})
VERBOSE_LOG_CAPTURE_ENABLED = _env_bool(
    "VERBOSE_LOG_CAPTURE_ENABLED", _LOGGING.get("verbose_capture_enabled", False)
)
if VERBOSE_LOG_CAPTURE_ENABLED:
    _DEFAULT_VERBOSE_DIR = _LOGGING.get("verbose_log_directory")
    default_verbose_dir = (
        _DEFAULT_VERBOSE_DIR.strip()
        if isinstance(_DEFAULT_VERBOSE_DIR, str) and _DEFAULT_VERBOSE_DIR.strip()
        else "logs"
    )

    VERBOSE_LOG_DIRECTORY = _env_path("VERBOSE_LOG_DIRECTORY", default_verbose_dir)
else:
    VERBOSE_LOG_DIRECTORY = None

__all__ = [
    "PROJECT_ROOT",
    "DEFAULTS_PATH",
    "ENV_PATH",
    "_DEFAULTS",
    "_coerce_path",
    "_env_bool",
    "_env_choice",
    "_env_int",
    "_env_float",
    "_env_path",
    "_normalize_base_url",
    "_persist_env_value",
    "_remove_env_keys",
    "HOLOCRON_API_URL",
    "TALK_PATH",
    "REPLY_ACCEPT",
    "REQUEST_TIMEOUT_SECONDS",
    "ASSISTANT_CONTEXT",
    "SAMPLE_RATE",
    "CHANNELS",
    "DTYPE",
    "AUDIO_INPUT_DEVICE",
    "RECORDING_FILENAME",
    "RECORDING_MIME_TYPE",
    "PLATFORM_CHOICES",
    "PLATFORM_NAME",
    "CACHE_DIRECTORY",
    "REPLY_FILENAME",
    "VERBOSE_LOG_CAPTURE_ENABLED",
    "VERBOSE_LOG_DIRECTORY",
    "persist_api_url",
    "reset_saved_settings",
]
