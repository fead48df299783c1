"""
Configuration for lanexpose.

This module defines the configuration dataclass for exposure sessions,
providing a centralized place for all configurable parameters.

Configuration can be modified at runtime by importing the global config
instance and updating its attributes, or loaded from a YAML file whose keys
are the lowercase field names.

Usage:
    from lanexpose.config import config

    config.START_PORT = 12000
    config.LOG_LEVEL = LogLevel.DEBUG
"""

import os
from dataclasses import dataclass, fields

import yaml

from lanexpose.models.enums import LogLevel, TargetStrategy
from lanexpose.utils.logger import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "LANEXPOSE_CONFIG"


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class ExposeConfig:
    """
    Exposure session configuration.

    Attributes:
        CONTAINER_NAME: Container whose service is exposed.
        CONTAINER_PORT: Service port inside the container (ip strategy).
        TARGET_STRATEGY: Discovery strategy when no explicit port is given.
        PORT_ENV_VAR: In-container variable naming the port (env strategy).
        START_PORT: First port tried during negotiation.
        MAX_PORT_ATTEMPTS: Number of ports tried before giving up.
        LOG_LEVEL: Logging verbosity level.
    """

    # -------------------------------------------------------------------------
    # Target Configuration
    # -------------------------------------------------------------------------

    CONTAINER_NAME: str = "ai_agent"
    CONTAINER_PORT: int = 4200
    TARGET_STRATEGY: TargetStrategy = TargetStrategy.IP
    PORT_ENV_VAR: str = "EXPOSE_PORT"

    # -------------------------------------------------------------------------
    # Negotiation Configuration
    # -------------------------------------------------------------------------

    START_PORT: int = 10000
    MAX_PORT_ATTEMPTS: int = 100

    # -------------------------------------------------------------------------
    # Relay Configuration
    # -------------------------------------------------------------------------

    DIAL_TIMEOUT_SECONDS: float = 10.0
    CLOSE_TIMEOUT_SECONDS: float = 1.0
    READ_CHUNK_SIZE: int = 64 * 1024

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = LogLevel.WARNING
    LOG_FILE: str = ""

    def update(self, values: dict) -> None:
        """
        Apply a mapping of lowercase setting names onto this config.

        Unknown keys are skipped with a warning. Values are coerced to the
        field's type.

        Raises:
            ValueError: If a value cannot be coerced.
        """
        known = {f.name.lower(): f for f in fields(self)}
        for key, value in values.items():
            field = known.get(str(key).lower())
            if field is None:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            setattr(self, field.name, _coerce(field.type, key, value))


def _coerce(kind: type, key, value):
    # bool is an int subclass but never a valid port or count
    if isinstance(value, bool) or value is None or isinstance(value, (list, dict)):
        raise ValueError(f"Invalid value for {key}: {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value for {key}: {value!r}") from e


# =============================================================================
# File Loading
# =============================================================================


def get_default_config_path() -> str:
    """Config file path from ``LANEXPOSE_CONFIG`` or ``~/.lanexpose``."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return os.path.expanduser(env_path)
    return os.path.expanduser("~/.lanexpose/config.yaml")


def load_config_file(path: str | None = None, target: "ExposeConfig | None" = None):
    """
    Load YAML settings into ``target`` (the global config by default).

    A missing file is not an error; the defaults stay in place.

    Returns:
        The updated config instance.
    """
    target = target or config
    path = path or get_default_config_path()
    if not os.path.isfile(path):
        logger.debug(f"No config file at {path}, using defaults")
        return target

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config file {path}: expected a mapping")

    target.update(data)
    logger.debug(f"Loaded config from {path}")
    return target


# Global config instance
config = ExposeConfig()
