from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir, user_log_dir

APP_NAME = "ChordCrack"
APP_SLUG = "chordcrack"

_logger = logging.getLogger(__name__)


def get_user_data_root(override: Optional[Path | str] = None, create: bool = True) -> Path:
    """Return the root directory used for all local user data.

    Resolution order: explicit override, CC_DATA_DIR env var, then the
    platformdirs user data dir for the app.
    """
    if override is not None:
        root = Path(override).expanduser()
    elif os.getenv("CC_DATA_DIR"):
        root = Path(os.environ["CC_DATA_DIR"]).expanduser()
    else:
        root = Path(user_data_dir(APP_SLUG, appauthor=False))
    if create:
        ensure_exists(root)
    return root


def get_profiles_dir(root: Optional[Path] = None, create: bool = True) -> Path:
    """Return directory holding per-user profile files."""
    sub = (root or get_user_data_root(create=create)) / "profiles"
    if create:
        ensure_exists(sub)
    return sub


def get_telemetry_dir(root: Optional[Path] = None, create: bool = True) -> Path:
    sub = (root or Path(user_log_dir(APP_SLUG, appauthor=False))) / "telemetry"
    if create:
        ensure_exists(sub)
    return sub


def ensure_exists(path: Path) -> Path:
    """Create the directory if it doesn't exist. Log and raise on failure."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:  # pragma: no cover - IO errors are environment-specific
        _logger.error("Failed to create directory '%s': %s", path, exc)
        raise
    return path
