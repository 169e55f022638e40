"""Configuration loader for plughub."""

from __future__ import annotations

import asyncio
import os
import tempfile
import tomllib
from pathlib import Path

import tomlkit
from pydantic import BaseModel, Field, field_validator

from plughub.capabilities import SchemeCollisionPolicy
from plughub.discovery import DEFAULT_ENTRY_POINT_GROUP, DEFAULT_NAME_PREFIX
from plughub.paths import get_config_path, get_plugin_dir

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_LEVELS = frozenset(LOG_LEVELS)
_COLLISION_POLICIES = frozenset(policy.value for policy in SchemeCollisionPolicy)


def atomic_write(path: Path, content: str) -> None:
    """Write file atomically to avoid partial/corrupt writes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        Path(tmp_path).replace(path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise


class PluginsConfig(BaseModel):
    """Where plugins come from and how their declarations are merged."""

    directory: str = Field(default="", description="Plugin directory (empty = default)")
    name_prefix: str = Field(default=DEFAULT_NAME_PREFIX, min_length=1)
    load_entry_points: bool = Field(
        default=False,
        description="Also load plugins advertised by installed distributions",
    )
    entry_point_group: str = Field(default=DEFAULT_ENTRY_POINT_GROUP)
    scheme_collision: SchemeCollisionPolicy = Field(default=SchemeCollisionPolicy.LAST_WINS)

    @field_validator("scheme_collision", mode="before")
    @classmethod
    def validate_scheme_collision(cls, value: object) -> str:
        """Gracefully coerce unknown policies to last_wins."""
        match value:
            case str() as policy if policy in _COLLISION_POLICIES:
                return policy
            case _:
                return SchemeCollisionPolicy.LAST_WINS.value

    @property
    def plugin_directory(self) -> Path:
        if self.directory:
            return Path(self.directory).expanduser()
        return get_plugin_dir()


class ActivationConfig(BaseModel):
    """Host-level policy for the startup sequence."""

    export_web_apis_on_failure: bool = Field(
        default=False,
        description="Export web APIs even when protocol activation fails",
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    diagnostics_buffer_size: int = Field(default=500, ge=1)

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, value: object) -> str:
        match value:
            case str() as level if level.upper() in _LOG_LEVELS:
                return level.upper()
            case _:
                return "INFO"


class PlughubConfig(BaseModel):
    """Root configuration model."""

    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    activation: ActivationConfig = Field(default_factory=ActivationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> PlughubConfig:
        """Load configuration from TOML file or use defaults."""
        if config_path is None:
            config_path = get_config_path()

        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls.model_validate(data)

        return cls()

    async def save(self, path: Path) -> None:
        """Serialize current config to TOML file.

        Args:
            path: Path to write config file (created if missing)
        """
        doc = tomlkit.document()
        for section_name, section in (
            ("plugins", self.plugins),
            ("activation", self.activation),
            ("logging", self.logging),
        ):
            table = tomlkit.table()
            for key, value in section.model_dump(mode="json").items():
                if value is not None:
                    table[key] = value
            doc[section_name] = table

        content = tomlkit.dumps(doc)
        await asyncio.to_thread(atomic_write, path, content)


__all__ = [
    "LOG_LEVELS",
    "ActivationConfig",
    "LoggingConfig",
    "PlughubConfig",
    "PluginsConfig",
    "atomic_write",
]
