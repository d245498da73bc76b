"""
Configuration management for JSONDB_ENGINE.

Two layers:

- ``EngineConfig``: process-wide defaults read from environment variables
  (where collection files live, default write mode and indentation).
- ``ConnectOptions``: the per-collection options accepted by
  ``CollectionStore.connect``, validated with Pydantic.
"""

import os
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import (DEFAULT_DATA_DIR, DEFAULT_INDENT_SPACE,
                        DEFAULT_WRITE_SYNC, MAX_INDENT_SPACE)
from .exceptions import ConfigurationError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean flag, got {raw!r}", config_key=name, config_value=raw
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}", config_key=name, config_value=raw
        ) from e


class EngineConfig:
    """
    JSONDB Engine configuration.

    Every value can be passed directly or picked up from the environment.

    Example:
        # Using environment variables (JSONDB_DATA_DIR, JSONDB_WRITE_SYNC,
        # JSONDB_INDENT_SPACE)
        config = EngineConfig()

        # Or using direct parameters
        config = EngineConfig(data_dir="/var/lib/myapp", write_sync=False)
        users = open_collection("users", config=config)
    """

    def __init__(
        self,
        data_dir: str | os.PathLike | None = None,
        write_sync: bool | None = None,
        indent_space: int | None = None,
    ):
        """
        Initialize configuration.

        Args:
            data_dir: Directory for backing files (defaults to JSONDB_DATA_DIR or "data")
            write_sync: Default write mode (defaults to JSONDB_WRITE_SYNC or true)
            indent_space: Default JSON indentation (defaults to JSONDB_INDENT_SPACE or 2)
        """
        self.data_dir = os.fspath(data_dir) if data_dir else os.getenv(
            "JSONDB_DATA_DIR", DEFAULT_DATA_DIR
        )
        self.write_sync = (
            write_sync
            if write_sync is not None
            else _env_bool("JSONDB_WRITE_SYNC", DEFAULT_WRITE_SYNC)
        )
        self.indent_space = (
            indent_space
            if indent_space is not None
            else _env_int("JSONDB_INDENT_SPACE", DEFAULT_INDENT_SPACE)
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If a value is missing or out of range
        """
        if not self.data_dir:
            raise ConfigurationError(
                "data_dir is required (set JSONDB_DATA_DIR or pass directly)",
                config_key="data_dir",
            )

        if not 0 <= self.indent_space <= MAX_INDENT_SPACE:
            raise ConfigurationError(
                f"indent_space must be between 0 and {MAX_INDENT_SPACE}, "
                f"got {self.indent_space}",
                config_key="indent_space",
                config_value=self.indent_space,
            )

    def default_connect_options(self) -> "ConnectOptions":
        """Connect options used when ``connect`` is called without any."""
        return ConnectOptions(write_sync=self.write_sync, indent_space=self.indent_space)


class ConnectOptions(BaseModel):
    """
    Options fixed on a collection at connect time.

    They configure persistence only: whether a flush blocks the calling task
    and how the backing file is indented. Both camelCase (``writeSync``,
    ``indentSpace``) and snake_case names are accepted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    write_sync: bool = Field(DEFAULT_WRITE_SYNC, alias="writeSync", strict=True)
    indent_space: int = Field(
        DEFAULT_INDENT_SPACE, alias="indentSpace", ge=0, le=MAX_INDENT_SPACE, strict=True
    )

    @classmethod
    def parse(
        cls,
        options: "ConnectOptions | Mapping[str, Any] | None",
        defaults: "ConnectOptions | None" = None,
    ) -> "ConnectOptions":
        """
        Build options from a mapping, filling unset values from ``defaults``.

        Raises:
            ConfigurationError: If an option is unknown or has the wrong type
        """
        defaults = defaults or cls()
        if options is None:
            return defaults
        if isinstance(options, ConnectOptions):
            return options
        if not isinstance(options, Mapping):
            raise ConfigurationError(
                f"Connect options must be a mapping, got {type(options).__name__}",
                config_key="options",
            )

        merged = {
            "write_sync": defaults.write_sync,
            "indent_space": defaults.indent_space,
        }
        try:
            parsed = cls.model_validate(dict(options))
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(p) for p in first.get("loc", ())) or "options"
            raise ConfigurationError(
                f"Invalid connect option {key}: {first.get('msg')}",
                config_key=key,
                config_value=first.get("input"),
            ) from e
        merged.update(parsed.model_dump(exclude_unset=True))
        return cls(**merged)
