"""Configuration models and helpers for Inkdeck."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


@dataclass(frozen=True)
class BootstrapReport:
    """Summary of files/directories created during initialisation."""

    base_created: bool
    state_dir_created: bool
    cache_dir_created: bool
    global_config_created: bool
    global_config_overwritten: bool


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be parsed or are invalid."""


@dataclass(frozen=True)
class ConfigPaths:
    """Resolved filesystem locations used by the application."""

    base_dir: Path
    global_config: Path

    @classmethod
    def default(cls) -> "ConfigPaths":
        """Return default locations under the user's home directory."""

        base = Path.home() / ".inkdeck"
        return cls.from_base_dir(base)

    @classmethod
    def from_base_dir(cls, base_dir: Path) -> "ConfigPaths":
        """Construct paths using ``base_dir`` as root."""

        base_dir = base_dir.expanduser()
        return cls(
            base_dir=base_dir,
            global_config=base_dir / "config.yml",
        )

    @property
    def state_dir(self) -> Path:
        """Default directory for the inventory file."""

        return self.base_dir / "state"

    @property
    def cache_dir(self) -> Path:
        """Default directory for rendered images."""

        return self.base_dir / "images"

    def resolve(self, candidate: Path) -> Path:
        """Resolve a relative path against ``base_dir``."""

        candidate = Path(candidate).expanduser()
        return candidate if candidate.is_absolute() else self.base_dir / candidate


_INTERVAL_PATTERN = re.compile(r"(\d+)([smhd])", re.IGNORECASE)
_INTERVAL_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_interval(expression: str) -> int:
    """Convert an interval such as ``"1h30m"`` into seconds."""

    text = expression.strip()
    total = 0
    pos = 0
    for match in _INTERVAL_PATTERN.finditer(text):
        if match.start() != pos:
            raise ValueError(f"Invalid interval expression: {expression}")
        total += int(match.group(1)) * _INTERVAL_UNITS[match.group(2).lower()]
        pos = match.end()

    if pos != len(text) or total <= 0:
        raise ValueError(f"Invalid interval expression: {expression}")
    return total


class RuntimeSettings(BaseModel):
    """Runtime-level defaults."""

    timezone: str = Field(default="UTC")
    storage_dir: Path = Field(default=Path("state"))
    log_level: str = Field(default="INFO")

    model_config = ConfigDict(extra="forbid")


class DisplayDefaults(BaseModel):
    """Rendering settings used when a device has neither a model nor an override."""

    width: int = Field(default=800, gt=0)
    height: int = Field(default=480, gt=0)
    rotation: int = Field(default=0)
    colors: int = Field(default=2, gt=0)
    bit_depth: int = Field(default=1, gt=0)
    scale_factor: float = Field(default=1.0, gt=0.0)
    mime_type: str = Field(default="image/png")
    offset_x: int = Field(default=0)
    offset_y: int = Field(default=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class TelemetrySettings(BaseModel):
    """Voltage range of the device battery (Li-ion: 3.0V empty, 4.2V full)."""

    min_voltage: float = Field(default=3.0)
    max_voltage: float = Field(default=4.2)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def check_range(self) -> "TelemetrySettings":
        if self.max_voltage <= self.min_voltage:
            raise ValueError("max_voltage must be greater than min_voltage.")
        return self


class CacheSettings(BaseModel):
    """Rendered image cache location and sweep behaviour."""

    image_dir: Path = Field(default=Path("images"))
    grace_seconds: float = Field(default=60.0, ge=0.0)
    cleanup_interval: str = Field(default="1h")

    model_config = ConfigDict(extra="forbid")

    @field_validator("cleanup_interval")
    @classmethod
    def check_interval(cls, value: str) -> str:
        parse_interval(value)
        return value

    @property
    def cleanup_interval_seconds(self) -> int:
        return parse_interval(self.cleanup_interval)


class GlobalConfig(BaseModel):
    """Top-level configuration file model."""

    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    display: DisplayDefaults = Field(default_factory=DisplayDefaults)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    model_config = ConfigDict(extra="forbid")


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except yaml.YAMLError as exc:  # pragma: no cover - depends on invalid input
        raise ConfigError(f"Failed to parse YAML file: {path}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Expected mapping at top level of {path}")
    return data


def load_global_config(path: Path) -> GlobalConfig:
    """Load and validate the global configuration file."""

    payload = _read_yaml(path)
    try:
        return GlobalConfig.model_validate(payload)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {path}: {exc}") from exc


def inventory_path(paths: ConfigPaths, config: GlobalConfig) -> Path:
    """Location of the inventory JSON file."""

    return paths.resolve(config.runtime.storage_dir) / "inventory.json"


def image_cache_dir(paths: ConfigPaths, config: GlobalConfig) -> Path:
    """Directory holding rendered images."""

    return paths.resolve(config.cache.image_dir)


def _default_global_config() -> Dict[str, Any]:
    """Dictionary representing the starter global configuration."""

    return {
        "runtime": {
            "timezone": "UTC",
            "storage_dir": "state",
            "log_level": "INFO",
        },
        "display": DisplayDefaults().model_dump(),
        "telemetry": TelemetrySettings().model_dump(),
        "cache": {
            "image_dir": "images",
            "grace_seconds": 60,
            "cleanup_interval": "1h",
        },
    }


def _write_yaml(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)


def bootstrap(paths: ConfigPaths, overwrite: bool = False) -> BootstrapReport:
    """Ensure configuration directories/files exist.

    Parameters
    ----------
    paths:
        Target filesystem layout.
    overwrite:
        When ``True`` the global config file is re-written even if it already exists.
    """

    base_created = False
    state_dir_created = False
    cache_dir_created = False
    global_config_created = False
    global_config_overwritten = False

    if not paths.base_dir.exists():
        paths.base_dir.mkdir(parents=True, exist_ok=True)
        base_created = True

    if not paths.state_dir.exists():
        paths.state_dir.mkdir(parents=True, exist_ok=True)
        state_dir_created = True

    if not paths.cache_dir.exists():
        paths.cache_dir.mkdir(parents=True, exist_ok=True)
        cache_dir_created = True

    existing_global = paths.global_config.exists()
    if not existing_global or overwrite:
        _write_yaml(paths.global_config, _default_global_config())
        global_config_created = True
        global_config_overwritten = existing_global and overwrite

    return BootstrapReport(
        base_created=base_created,
        state_dir_created=state_dir_created,
        cache_dir_created=cache_dir_created,
        global_config_created=global_config_created,
        global_config_overwritten=global_config_overwritten,
    )
