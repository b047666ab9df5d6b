"""Configuration for skyport: environment variable names and config file loading."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from .exceptions import EnvironmentNotDefinedError, InitializationError, InvalidConfigFilePathError
from .models import Environment

logger = logging.getLogger(__name__)

# ============================================
# HTTP Transport
# ============================================
SKYPORT_HTTP_TIMEOUT = 'SKYPORT_HTTP_TIMEOUT'
DEFAULT_SKYPORT_HTTP_TIMEOUT = 30.0

# ============================================
# Log Sink
# ============================================
SKYPORT_LOG_FILE = 'SKYPORT_LOG_FILE'
DEFAULT_SKYPORT_LOG_FILE = None


def http_timeout() -> float:
    """Request timeout in seconds, from SKYPORT_HTTP_TIMEOUT."""
    raw = os.environ.get(SKYPORT_HTTP_TIMEOUT)
    if not raw:
        return DEFAULT_SKYPORT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", SKYPORT_HTTP_TIMEOUT, raw)
        return DEFAULT_SKYPORT_HTTP_TIMEOUT


def log_file() -> Optional[str]:
    """Default log sink path, from SKYPORT_LOG_FILE."""
    return os.environ.get(SKYPORT_LOG_FILE) or DEFAULT_SKYPORT_LOG_FILE


def parse_environment(config: Union[Environment, dict[str, Any]]) -> Environment:
    """
    Validate an inline environment description.

    Raises:
        InitializationError: Required keys are missing or malformed
    """
    if isinstance(config, Environment):
        return config
    try:
        return Environment.model_validate(config)
    except ValidationError as e:
        raise InitializationError(f"Invalid session config: {e}") from e


def load_environment(config_file: Union[str, Path], environment: Optional[str]) -> Environment:
    """
    Load one named environment from a JSON config file.

    The file maps environment names to environment descriptions:

        {
            "openstack_admin": {
                "provider": "openstack",
                "auth_service": {"name": "identity", "host_uri": "...", "request": "create_token"},
                "auth_credentials": {"username": "...", "password": "..."}
            }
        }

    Raises:
        InvalidConfigFilePathError: The path is not a file
        EnvironmentNotDefinedError: The file has no such environment
        InitializationError: The file is not valid JSON or the entry is malformed
    """
    path = Path(config_file)
    if not path.is_file():
        raise InvalidConfigFilePathError(path)

    try:
        environments = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InitializationError(f"Could not parse config file {path}: {e}") from e

    if not isinstance(environments, dict) or not environment or environment not in environments:
        raise EnvironmentNotDefinedError(path, environment)

    logger.debug("Loaded environment %s from %s", environment, path)
    return parse_environment(environments[environment])
