"""Configuration and storage-path resolution.

## Config files

Settings are merged from, lowest precedence first:

1. Built-in defaults
2. ``<config-home>/project-manager[-<mode>]/config.json`` (user config)
3. ``~/.pmrc.json``
4. ``./.pmrc.json``
5. ``PM_*`` environment variables

### .pmrc.json Structure

```json
{
  "defaultPriority": "high",
  "defaultType": "bug",
  "defaultOutputFormat": "json",
  "storagePath": "/path/to/tickets.json",
  "confirmDeletion": false
}
```

## Storage location

``<config-home>`` is ``$XDG_CONFIG_HOME`` or ``~/.config``. The directory
name gets a suffix from ``PM_MODE``: ``development`` -> ``-dev``, any other
non-production mode -> ``-<mode>``. ``PM_STORAGE_PATH`` overrides the
tickets file entirely.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

from platformdirs import user_log_dir

logger = logging.getLogger(__name__)

APP_DIR_NAME = "project-manager"
TICKETS_FILE = "tickets.json"
USER_CONFIG_FILE = "config.json"
RC_FILE = ".pmrc.json"

ENV_STORAGE_PATH = "PM_STORAGE_PATH"
ENV_MODE = "PM_MODE"

VALID_PRIORITIES = ("high", "medium", "low")
VALID_TYPES = ("feature", "bug", "task")
VALID_PRIVACY = ("local-only", "shareable", "public")
VALID_OUTPUT_FORMATS = ("table", "json", "text")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class PMConfig:
    """Resolved user preferences."""

    default_priority: str = "medium"
    default_type: str = "task"
    default_privacy: str = "local-only"
    default_output_format: str = "table"
    storage_path: Optional[str] = None  # Overrides the XDG tickets file
    confirm_deletion: bool = True
    max_title_length: int = 50  # Title width in list output
    log_level: str = "WARNING"

    def to_dict(self) -> dict:
        return asdict(self)


# camelCase keys in config files -> PMConfig fields
FILE_KEYS = {
    "defaultPriority": "default_priority",
    "defaultType": "default_type",
    "defaultPrivacy": "default_privacy",
    "defaultOutputFormat": "default_output_format",
    "storagePath": "storage_path",
    "confirmDeletion": "confirm_deletion",
    "maxTitleLength": "max_title_length",
    "logLevel": "log_level",
}

ENV_KEYS = {
    "PM_DEFAULT_PRIORITY": "default_priority",
    "PM_DEFAULT_TYPE": "default_type",
    "PM_DEFAULT_PRIVACY": "default_privacy",
    "PM_DEFAULT_OUTPUT_FORMAT": "default_output_format",
    ENV_STORAGE_PATH: "storage_path",
    "PM_CONFIRM_DELETION": "confirm_deletion",
    "PM_MAX_TITLE_LENGTH": "max_title_length",
    "PM_LOG_LEVEL": "log_level",
}

_BOOL_FIELDS = {"confirm_deletion"}
_INT_FIELDS = {"max_title_length"}


def get_mode() -> str:
    return os.environ.get(ENV_MODE, "").strip() or "production"


def get_app_dir_name(mode: Optional[str] = None) -> str:
    """Directory name for the given mode (``project-manager``, ``project-manager-dev``, ...)."""
    mode = mode or get_mode()
    if mode == "production":
        return APP_DIR_NAME
    if mode == "development":
        return f"{APP_DIR_NAME}-dev"
    return f"{APP_DIR_NAME}-{mode}"


def get_config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    return Path(xdg) if xdg else Path.home() / ".config"


def get_storage_dir(mode: Optional[str] = None) -> Path:
    return get_config_home() / get_app_dir_name(mode)


def get_user_config_path(mode: Optional[str] = None) -> Path:
    return get_storage_dir(mode) / USER_CONFIG_FILE


def get_default_storage_path(mode: Optional[str] = None) -> Path:
    return get_storage_dir(mode) / TICKETS_FILE


def get_logs_dir(mode: Optional[str] = None) -> Path:
    return Path(user_log_dir(get_app_dir_name(mode)))


def resolve_storage_path(custom_path: Optional[str] = None, mode: Optional[str] = None) -> Path:
    """Resolve the tickets file.

    Priority: explicit path > PM_STORAGE_PATH > XDG default.
    """
    if custom_path and custom_path.strip():
        return Path(custom_path.strip()).expanduser()
    env_path = os.environ.get(ENV_STORAGE_PATH, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return get_default_storage_path(mode)


def get_config_paths(cwd: Optional[Path] = None, mode: Optional[str] = None) -> list[Path]:
    """Config files in order of increasing precedence."""
    cwd = Path(cwd) if cwd else Path.cwd()
    return [
        get_user_config_path(mode),
        Path.home() / RC_FILE,
        cwd / RC_FILE,
    ]


def load_config_file(path: Path) -> dict:
    """Load a JSON config file, returning {} when missing or unusable."""
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a JSON object", path)
        return {}
    return data


def _convert(field_name: str, value: Any) -> Any:
    """Parse string input for bool and int fields; other values pass through."""
    if field_name in _BOOL_FIELDS and isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if field_name in _INT_FIELDS and isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return value
    return value


def _expected_type(field_name: str) -> type:
    if field_name in _BOOL_FIELDS:
        return bool
    if field_name in _INT_FIELDS:
        return int
    return str


def _check_type(field_name: str, value: Any) -> bool:
    expected = _expected_type(field_name)
    # bool is an int subclass; True is not a title length.
    if expected is int and isinstance(value, bool):
        return False
    return isinstance(value, expected)


def _apply(config: PMConfig, field_name: str, value: Any, source: str) -> None:
    value = _convert(field_name, value)
    if value is None:
        return
    if not _check_type(field_name, value):
        logger.warning(
            "Ignoring %s from %s: expected %s, got %r",
            field_name,
            source,
            _expected_type(field_name).__name__,
            value,
        )
        return
    setattr(config, field_name, value)


def load_config(cwd: Optional[Path] = None, mode: Optional[str] = None) -> PMConfig:
    """Merge defaults, config files and environment into a PMConfig."""
    config = PMConfig()
    field_names = {f.name for f in fields(PMConfig)}

    for path in get_config_paths(cwd, mode):
        data = load_config_file(path)
        for key, value in data.items():
            field_name = FILE_KEYS.get(key, key)
            if field_name in field_names:
                _apply(config, field_name, value, str(path))

    for env_key, field_name in ENV_KEYS.items():
        value = os.environ.get(env_key)
        if value is not None and value.strip():
            _apply(config, field_name, value.strip(), env_key)

    return config


def validate_config(config: PMConfig) -> list[str]:
    """Return a list of problems with the config (empty when valid)."""
    errors = []
    if config.default_priority not in VALID_PRIORITIES:
        errors.append(f"Invalid defaultPriority: {config.default_priority}")
    if config.default_type not in VALID_TYPES:
        errors.append(f"Invalid defaultType: {config.default_type}")
    if config.default_privacy not in VALID_PRIVACY:
        errors.append(f"Invalid defaultPrivacy: {config.default_privacy}")
    if config.default_output_format not in VALID_OUTPUT_FORMATS:
        errors.append(f"Invalid defaultOutputFormat: {config.default_output_format}")
    if not isinstance(config.max_title_length, int) or not 1 <= config.max_title_length <= 200:
        errors.append(
            f"Invalid maxTitleLength: {config.max_title_length} (must be between 1 and 200)"
        )
    if str(config.log_level).upper() not in VALID_LOG_LEVELS:
        errors.append(f"Invalid logLevel: {config.log_level}")
    return errors


def set_config_value(key: str, value: str, path: Path) -> Path:
    """Write one setting into a JSON config file, keeping its other keys.

    Args:
        key: camelCase file key (e.g. "defaultPriority")
        value: Raw string value; booleans and integers are converted and
            the result is checked like a loaded config
        path: Config file to update (created if missing)

    Returns:
        Path to the written config file
    """
    if key not in FILE_KEYS:
        raise ValueError(f"Unknown config key: {key} (expected one of: {', '.join(FILE_KEYS)})")

    field_name = FILE_KEYS[key]
    parsed = _convert(field_name, value)
    if not _check_type(field_name, parsed):
        raise ValueError(f"Invalid value for {key}: {value!r}")
    candidate = PMConfig(**{field_name: parsed})
    problems = [p for p in validate_config(candidate) if f" {key}:" in p]
    if problems:
        raise ValueError(problems[0])

    data = load_config_file(path)
    data[key] = parsed

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    return path
