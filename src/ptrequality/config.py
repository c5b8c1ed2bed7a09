"""Analyzer configuration: the ``check-is`` flag, from code, flags or YAML."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict

log = logging.getLogger(__name__)

CONFIG_FILENAME = "ptrequality.yaml"

# Spellings accepted by Go's strconv.ParseBool, which the host's flag set uses.
_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

# flag name -> field name
FLAGS = {"check-is": "check_is"}


class ConfigError(ValueError):
    """An invalid option; fatal before any analysis starts."""


class AnalyzerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    check_is: bool = True    # look for Is / Unwrap methods along error chains

    def with_flag(self, name: str, value: str | bool) -> AnalyzerConfig:
        """Return a copy with flag ``name`` set, as the host's flag setter would."""
        field = FLAGS.get(name) or (name if name in FLAGS.values() else None)
        if field is None:
            raise ConfigError(f"unknown flag {name!r}")
        return self.model_copy(update={field: parse_bool(value, name)})


def parse_bool(value: str | bool, name: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"invalid boolean value {value!r} for -{name}")


def load_config(path: Path) -> AnalyzerConfig:
    """Read ``ptrequality.yaml``-style settings. Keys: ``check-is`` or ``check_is``."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"{path}: {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc

    config = AnalyzerConfig()
    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping")
    for key, value in data.items():
        if not isinstance(value, (bool, str)):
            raise ConfigError(f"{path}: {key}: expected a boolean, got {value!r}")
        config = config.with_flag(str(key), value)
    log.debug("Loaded config from %s: %s", path, config)
    return config
