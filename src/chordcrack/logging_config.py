from __future__ import annotations

import logging
from typing import Union

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"

# requests/urllib3 log every Supabase round trip at DEBUG
_NOISY_LOGGERS = ("urllib3",)


def resolve_level(level: Union[str, int, None], default: int = logging.INFO) -> int:
    """Turn 'debug', 'INFO', 10 or None into a logging level."""
    if level is None or level == "":
        return default
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


def configure_logging(level: Union[str, int, None] = None, default_level: int = logging.INFO) -> int:
    """Configure the root logger for the app shell and return the level used.

    ``level`` normally comes from ``Settings.log_level`` (env CC_LOG_LEVEL).
    Has no effect on the root handlers when logging is already configured.
    """
    resolved = resolve_level(level, default_level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
    logging.getLogger(__name__).debug("Logging configured at %s", logging.getLevelName(resolved))
    return resolved
