"""User-configurable settings helpers for blkinfo."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional


CONFIG_ENV_VAR = "BLKINFO_CONFIG_DIR"
CONFIG_FILENAME = "config.json"

__all__ = [
    "CONFIG_ENV_VAR",
    "ConfigError",
    "HostPaths",
    "LOG_LEVEL_VALUES",
    "OUTPUT_FORMAT_VALUES",
    "config_dir",
    "config_path",
    "list_config",
    "get_value",
    "set_value",
    "unset_value",
]


class ConfigError(RuntimeError):
    """Raised when configuration cannot be read or updated."""


def config_dir() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".blkinfo"


def config_path() -> Path:
    return config_dir() / CONFIG_FILENAME


def _load_user_config() -> Dict[str, Any]:
    path = config_path()
    if not path.exists():
        return {}

    try:
        payload = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON") from exc

    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    return payload


def _write_user_config(data: Dict[str, Any]) -> None:
    path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True))


_LOG_LEVEL_ALIASES = {"warn": "warning"}
_OUTPUT_FORMAT_ALIASES = {"yml": "yaml"}


def _parse_log_level(value: str) -> str:
    normalized = value.strip().lower()
    normalized = _LOG_LEVEL_ALIASES.get(normalized, normalized)
    if normalized not in LOG_LEVEL_VALUES:
        raise ConfigError(
            f"Unsupported log level '{value}'. Choose from {', '.join(LOG_LEVEL_VALUES)}"
        )
    return normalized


def _parse_output_format(value: str) -> str:
    normalized = value.strip().lower()
    normalized = _OUTPUT_FORMAT_ALIASES.get(normalized, normalized)
    if normalized not in OUTPUT_FORMAT_VALUES:
        raise ConfigError(
            f"Unsupported output format '{value}'. Choose from {', '.join(OUTPUT_FORMAT_VALUES)}"
        )
    return normalized


def _parse_path(value: str) -> str:
    candidate = value.strip()
    if not candidate:
        raise ConfigError("Expected a non-empty path")
    expanded = os.path.expanduser(candidate)
    if not os.path.isabs(expanded):
        raise ConfigError(f"Expected an absolute path, got '{value}'")
    return expanded


@dataclass(frozen=True)
class Option:
    key: str
    parser: Callable[[str], Any]
    default: Any
    description: str
    value_type: str
    choices: Optional[Iterable[Any]] = None

    def validate_user_value(self, value: Any) -> Any:
        if value is None:
            return self.default
        if self.value_type == "string" and not isinstance(value, str):
            raise ConfigError(f"Config key '{self.key}' expects a string value")
        if self.choices and value not in self.choices:
            raise ConfigError(
                f"Config key '{self.key}' must be one of {', '.join(map(str, self.choices))}"
            )
        return value


LOG_LEVEL_VALUES = ("debug", "info", "warning", "error", "critical")
OUTPUT_FORMAT_VALUES = ("json", "yaml")


OPTIONS: Dict[str, Option] = {
    "log.level": Option(
        key="log.level",
        parser=_parse_log_level,
        default="warning",
        description="Default log level when --log-level is not provided.",
        value_type="string",
        choices=LOG_LEVEL_VALUES,
    ),
    "output.format": Option(
        key="output.format",
        parser=_parse_output_format,
        default="json",
        description="Default output format when --format is not provided.",
        value_type="string",
        choices=OUTPUT_FORMAT_VALUES,
    ),
    "paths.dev": Option(
        key="paths.dev",
        parser=_parse_path,
        default="/dev",
        description="Directory holding device nodes.",
        value_type="string",
    ),
    "paths.sysfs_block": Option(
        key="paths.sysfs_block",
        parser=_parse_path,
        default="/sys/block",
        description="Root of the sysfs block device tree.",
        value_type="string",
    ),
    "paths.udev_data": Option(
        key="paths.udev_data",
        parser=_parse_path,
        default="/run/udev/data",
        description="Directory holding the udev runtime database.",
        value_type="string",
    ),
    "paths.mountinfo": Option(
        key="paths.mountinfo",
        parser=_parse_path,
        default="/proc/self/mountinfo",
        description="Mount table read when resolving a device's mountpoint.",
        value_type="string",
    ),
    "paths.mtab": Option(
        key="paths.mtab",
        parser=_parse_path,
        default="/etc/mtab",
        description="Mount table read when resolving a mountpoint's device.",
        value_type="string",
    ),
}


def _get_option(key: str) -> Option:
    try:
        return OPTIONS[key]
    except KeyError as exc:
        raise ConfigError(f"Unknown config key '{key}'") from exc


def _validated_user_values() -> Dict[str, Any]:
    raw = _load_user_config()
    validated: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in OPTIONS:
            continue
        option = OPTIONS[key]
        validated[key] = option.validate_user_value(value)
    return validated


def list_config() -> Dict[str, Dict[str, Any]]:
    """Return metadata keyed by option name."""

    user_values = _validated_user_values()
    result: Dict[str, Dict[str, Any]] = {}

    for key, option in OPTIONS.items():
        if key in user_values:
            value = user_values[key]
            source = "user"
        else:
            value = option.default
            source = "default"

        result[key] = {
            "value": value,
            "default": option.default,
            "description": option.description,
            "type": option.value_type,
            "choices": tuple(option.choices) if option.choices else None,
            "source": source,
        }

    return result


def get_value(key: str) -> Any:
    option = _get_option(key)
    user_values = _validated_user_values()
    return user_values.get(key, option.default)


def set_value(key: str, raw_value: str) -> Any:
    option = _get_option(key)
    parsed = option.parser(raw_value)
    payload = _load_user_config()
    payload[key] = parsed
    _write_user_config(payload)
    return parsed


def unset_value(key: str) -> None:
    _get_option(key)
    payload = _load_user_config()
    if key in payload:
        del payload[key]
        _write_user_config(payload)


@dataclass(frozen=True)
class HostPaths:
    """Locations of the kernel-exposed data sources consulted per query.

    Every reader takes one of these at construction so tests can point the
    whole lookup at a fixture tree instead of the live host.
    """

    dev: str = "/dev"
    sysfs_block: str = "/sys/block"
    udev_data: str = "/run/udev/data"
    mountinfo: str = "/proc/self/mountinfo"
    mtab: str = "/etc/mtab"

    @classmethod
    def from_config(cls) -> "HostPaths":
        return cls(
            dev=get_value("paths.dev"),
            sysfs_block=get_value("paths.sysfs_block"),
            udev_data=get_value("paths.udev_data"),
            mountinfo=get_value("paths.mountinfo"),
            mtab=get_value("paths.mtab"),
        )

    @classmethod
    def under(cls, root: os.PathLike | str) -> "HostPaths":
        """Return the default layout re-rooted below ``root``."""

        base = Path(root)
        return cls(
            dev=str(base / "dev"),
            sysfs_block=str(base / "sys" / "block"),
            udev_data=str(base / "run" / "udev" / "data"),
            mountinfo=str(base / "proc" / "self" / "mountinfo"),
            mtab=str(base / "etc" / "mtab"),
        )
