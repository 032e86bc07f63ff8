"""
config.py - Build settings and logging setup.

Settings come from an optional YAML file:

    page_log_interval: 10000     # report progress every N pages
    edge_log_interval: 100000    # sample dangling-link reports every N bad edges
    chunk_size: 1048576          # bytes per read from the dump
    show_progress: true          # live rich display in the CLI

Logging can be configured with a YAML document in logging.config.dictConfig
format (the CLI's --logconf option).
"""

import logging
import logging.config
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


@dataclass(frozen=True)
class BuildConfig:
    """Tunables shared by both passes."""

    page_log_interval: int = 10_000
    edge_log_interval: int = 100_000
    chunk_size: int = 1024 * 1024
    show_progress: bool = True

    def __post_init__(self):
        for name in ("page_log_interval", "edge_log_interval", "chunk_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.show_progress, bool):
            raise ConfigError(f"show_progress must be true or false, got {self.show_progress!r}")


DEFAULT_CONFIG = BuildConfig()


def _load_yaml_mapping(path: Path) -> dict:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"could not read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a YAML mapping, got {type(data).__name__}")
    return data


def load_config(path: Optional[Path]) -> BuildConfig:
    """Load a BuildConfig from YAML; None gives the defaults."""
    if path is None:
        return DEFAULT_CONFIG

    data = _load_yaml_mapping(Path(path))
    known = {f.name for f in fields(BuildConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown config keys in {path}: {', '.join(unknown)}")
    return BuildConfig(**data)


def configure_logging(logconf: Optional[Path] = None, quiet: bool = False) -> None:
    """
    Set up logging for a CLI run.

    With a logconf file the YAML document is passed to dictConfig as-is.
    Otherwise basicConfig is used with the project's usual format.
    """
    if logconf is not None:
        data = _load_yaml_mapping(Path(logconf))
        data.setdefault('version', 1)
        try:
            logging.config.dictConfig(data)
        except (ValueError, TypeError, AttributeError, ImportError) as e:
            raise ConfigError(f"invalid logging config {logconf}: {e}") from e
        return

    logging.basicConfig(
        level=logging.WARNING if quiet else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT
    )
