"""Numeric settings from environment variables."""

import logging
import os
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

N = TypeVar('N', int, float)


def env_number(name: str, default: N, cast: Callable[[str], N] = int, minimum: N | None = None) -> N:
    """Read a numeric env var, falling back to default when unset, unparseable or below minimum."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid numeric setting, using default", extra={"setting": name, "value": raw, "default": default})
        return default
    if minimum is not None and not value >= minimum:
        logger.warning("Setting below minimum, using default", extra={"setting": name, "value": raw, "default": default})
        return default
    return value
