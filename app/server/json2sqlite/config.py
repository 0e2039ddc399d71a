"""
Run configuration.

A ConversionConfig is supplied once, before any data is streamed, and is
immutable for the lifetime of the run.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SAMPLE_SIZE,
    DEFAULT_TABLE_NAME,
    ENV_PREFIX,
)
from .exceptions import ConfigurationError


def _positive_int(value, field_name: str) -> int:
    # bool is an int subclass; True is not a batch size
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be a positive integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ConfigurationError(f"{field_name} must be a positive integer, got {value!r}")
    if not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{field_name} must be a positive integer, got {value!r}")
    return value


@dataclass(frozen=True)
class ConversionConfig:
    """Settings for one conversion run.

    Attributes:
        table_name: Name of the table to create (sanitized when DDL is emitted)
        sample_size: Number of leading objects used to infer the base schema
        batch_size: Number of rows committed per transaction
    """

    table_name: str = DEFAULT_TABLE_NAME
    sample_size: int = DEFAULT_SAMPLE_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self):
        table_name = (self.table_name or "").strip() or DEFAULT_TABLE_NAME
        object.__setattr__(self, "table_name", table_name)
        object.__setattr__(self, "sample_size", _positive_int(self.sample_size, "sample_size"))
        object.__setattr__(self, "batch_size", _positive_int(self.batch_size, "batch_size"))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ConversionConfig":
        """
        Build a config from JSON2SQLITE_* environment variables.

        Keyword overrides that are not None take precedence over the environment.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field_name in ("table_name", "sample_size", "batch_size"):
            raw = environ.get(ENV_PREFIX + field_name.upper())
            if raw is not None:
                values[field_name] = raw
        for field_name, value in overrides.items():
            if value is not None:
                values[field_name] = value
        return cls(**values)
