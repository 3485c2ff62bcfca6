"""Load replicant settings from TOML (e.g. replicant.toml) and the environment.

Config file is looked up in order:
  1. The path passed to load_config() (if given)
  2. Path in REPLICANT_CONFIG env var (if set)
  3. replicant.toml in the current working directory

Only the ``[replicant]`` table is read. If no file is found, built-in
defaults are used. These environment variables override file values:

  REPLICANT_ON_UNRESOLVED_REFERENCE   "warn-and-null" or "fail"
  REPLICANT_LOG_LEVEL                 logging level name, e.g. "DEBUG"

Example replicant.toml:
    ```toml
    [replicant]
    log_level = "WARNING"
    quiet = true

    [replicant.loader]
    on_unresolved_reference = "fail"
    ```

Applying a loaded config:
    ```python
    config = load_config()
    configure_logging(config)
    with Loader(registry, config=config.loader) as loader:
        loader.log_to(sys.stderr, **config.status_options())
        loader.read(sys.stdin)
    ```
"""

from __future__ import annotations

import logging
import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from replicant.logging import PprintLogger, setup_logging

CONFIG_ENV_VAR = "REPLICANT_CONFIG"
UNRESOLVED_ENV_VAR = "REPLICANT_ON_UNRESOLVED_REFERENCE"
LOG_LEVEL_ENV_VAR = "REPLICANT_LOG_LEVEL"
DEFAULT_CONFIG_FILE = "replicant.toml"


class UnresolvedReferencePolicy(str, Enum):
    """What the Loader does with a reference that has no keymap entry."""

    WARN_AND_NULL = "warn-and-null"
    """Log a warning and substitute None. Historical streams may reference
    records that were skipped or deleted, so this is the default."""

    FAIL = "fail"
    """Raise UnresolvedReferenceError and abort the load."""


class LoaderConfig(BaseModel, frozen=True):
    """Settings for a Loader session."""

    on_unresolved_reference: UnresolvedReferencePolicy = Field(
        default=UnresolvedReferencePolicy.WARN_AND_NULL,
        description="Policy for references missing from the keymap.",
    )


class ReplicantConfig(BaseModel, frozen=True):
    """Top-level settings for dump and load sessions."""

    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    log_level: str = Field(default="INFO", description="Level for the replicant logger.")
    verbose: bool = Field(default=False, description="Print one status line per tuple.")
    quiet: bool = Field(default=False, description="Suppress status output.")

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    def status_options(self) -> dict[str, bool]:
        """Keyword arguments for Dumper.log_to() / Loader.log_to()."""
        return {"verbose": self.verbose, "quiet": self.quiet}


def _default_config_paths(path: str | Path | None) -> list[Path]:
    """Return paths to check for replicant.toml (first existing wins)."""
    paths: list[Path] = []
    if path is not None:
        paths.append(Path(path))
    if os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(os.environ[CONFIG_ENV_VAR]))
    paths.append(Path.cwd() / DEFAULT_CONFIG_FILE)
    return paths


def _read_config_file(path: str | Path | None) -> dict[str, Any]:
    for candidate in _default_config_paths(path):
        if candidate.is_file():
            with open(candidate, "rb") as f:
                data = tomllib.load(f)
            section = data.get("replicant", {})
            return dict(section) if isinstance(section, dict) else {}
    return {}


def load_config(path: str | Path | None = None) -> ReplicantConfig:
    """Build a validated ReplicantConfig from file and environment.

    Raises:
        tomllib.TOMLDecodeError: If the config file is not valid TOML.
        pydantic.ValidationError: If a setting has an invalid value.
    """
    data = _read_config_file(path)
    loader = dict(data.get("loader") or {})
    if os.environ.get(UNRESOLVED_ENV_VAR):
        loader["on_unresolved_reference"] = os.environ[UNRESOLVED_ENV_VAR]
    if os.environ.get(LOG_LEVEL_ENV_VAR):
        data["log_level"] = os.environ[LOG_LEVEL_ENV_VAR]
    data["loader"] = loader
    return ReplicantConfig.model_validate(data)


def configure_logging(config: ReplicantConfig) -> PprintLogger:
    """Set up the package logger at the configured level."""
    return setup_logging(config.log_level)
