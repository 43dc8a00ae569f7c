"""
Host Configuration.

This module loads the host application's TOML configuration.

Sections:
- [paths]     plugin and vendor directories
- [database]  SQLAlchemy database URL
- [logging]   log level, format and optional rotating file
- [app]       installed/updating/maintenance flags
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from plughost.config.toml_handler import TOMLError, read_toml, write_toml

DEFAULT_CONFIG_FILE = Path("config/plughost.toml")


class ConfigError(Exception):
    """Raised when the host configuration is invalid."""

    pass


@dataclass
class PathSettings:
    plugins: Path = Path("plugins")
    vendor: Path = Path("vendor")


@dataclass
class DatabaseSettings:
    url: str = "sqlite:///plughost.db"
    echo: bool = False


@dataclass
class LoggingSettings:
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    log_to_file: bool = False
    log_file: str = "logs/plughost.log"
    rotation_size_mb: int = 10
    rotation_backup_count: int = 5


@dataclass
class AppSettings:
    installed: bool = True
    updating: bool = False
    maintenance: bool = False


@dataclass
class HostConfig:
    """
    Host application configuration.

    Attributes:
        paths: Filesystem locations
        database: Storage settings
        logging: Logging settings
        app: Application state flags
    """

    paths: PathSettings = field(default_factory=PathSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    app: AppSettings = field(default_factory=AppSettings)


def _build_section(section_cls: type, name: str, data: Any) -> Any:
    """Build one section dataclass from its TOML table."""
    if not isinstance(data, dict):
        raise ConfigError(f"[{name}] must be a table")

    known = {f.name: f for f in fields(section_cls)}
    values = {}
    for key, value in data.items():
        if key not in known:
            raise ConfigError(f"Unknown setting '{key}' in [{name}]")

        default = known[key].default
        if isinstance(default, Path):
            if not isinstance(value, str):
                raise ConfigError(f"[{name}] {key} must be a string path")
            value = Path(value)
        elif isinstance(default, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"[{name}] {key} must be a boolean")
        elif not isinstance(value, type(default)) or isinstance(value, bool):
            raise ConfigError(
                f"[{name}] {key} must be {type(default).__name__}, got {type(value).__name__}"
            )
        values[key] = value

    return section_cls(**values)


def load_host_config(path: Path | None = None) -> HostConfig:
    """
    Load the host configuration.

    Args:
        path: TOML file to read (defaults to config/plughost.toml)

    Returns:
        HostConfig with defaults for anything not set

    Raises:
        ConfigError: If the file is unreadable or contains invalid settings
    """
    path = path or DEFAULT_CONFIG_FILE
    if not path.exists():
        return HostConfig()

    try:
        data = read_toml(path)
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    sections = {f.name: f.default_factory for f in fields(HostConfig)}
    values = {}
    for name, table in data.items():
        if name not in sections:
            raise ConfigError(f"Unknown configuration section [{name}]")
        values[name] = _build_section(sections[name], name, table)

    return HostConfig(**values)


def save_host_config(config: HostConfig, path: Path | None = None) -> None:
    """
    Write the host configuration as TOML.

    Raises:
        ConfigError: If the file cannot be written
    """
    data = asdict(config)
    for section in data.values():
        for key, value in section.items():
            if isinstance(value, Path):
                section[key] = value.as_posix()

    try:
        write_toml(path or DEFAULT_CONFIG_FILE, data)
    except TOMLError as e:
        raise ConfigError(str(e)) from e
