from __future__ import annotations

import json
import logging
import os
import re
import shutil
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from ..paths import ensure_exists, get_profiles_dir
from .errors import CorruptProfileError, PersistenceError, ProfileValidationError
from .models import SCHEMA_VERSION, UserProfile

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"[^A-Za-z0-9_.-]+")


def encode_profile(profile: UserProfile) -> str:
    return json.dumps(profile.to_dict(), ensure_ascii=False, sort_keys=True, indent=2)


def decode_profile(text: str) -> UserProfile:
    """Decode JSON text into a UserProfile with version validation."""
    try:
        data: Dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProfileValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProfileValidationError("Profile must be a JSON object")
    version = int(data.get("schema_version", SCHEMA_VERSION))
    if version > SCHEMA_VERSION:
        raise ProfileValidationError(
            f"Profile schema version {version} is newer than supported {SCHEMA_VERSION}."
        )
    return UserProfile.from_dict(data)


class ProfileStore:
    """Reads and writes one player's profile file atomically.

    Layout: ``<root>/profiles/<profile_id>.json`` with a ``.bak`` copy of the
    previous write next to it.
    """

    def __init__(self, root_dir: Optional[Path] = None, profile_id: str = "default") -> None:
        safe = _SAFE_ID.sub("_", profile_id).strip("._") or "default"
        self.profiles_dir = get_profiles_dir(Path(root_dir) if root_dir is not None else None)
        self.path = self.profiles_dir / f"{safe}.json"
        self.profile_id = safe
        self.lock = threading.RLock()

    @property
    def backup_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".bak")

    def exists(self) -> bool:
        return self.path.exists() or self.backup_path.exists()

    def load(self) -> UserProfile:
        """Load the profile, falling back to the backup. A missing profile yields a fresh one."""
        with self.lock:
            if not self.exists():
                logger.info("No profile at %s; starting fresh", self.path)
                return UserProfile()
            try:
                return self._read(self.path)
            except (OSError, PersistenceError) as primary:
                logger.warning("Failed to read profile %s: %s; trying backup", self.path, primary)
                try:
                    return self._read(self.backup_path)
                except (OSError, PersistenceError) as e:
                    raise CorruptProfileError(f"Unable to load profile from {self.path}: {primary}") from e

    def save(self, profile: UserProfile) -> Path:
        with self.lock:
            profile.touch()
            try:
                self._atomic_write(self.path, encode_profile(profile))
            except OSError as e:
                logger.exception("Failed to save profile to %s", self.path)
                raise PersistenceError(str(e)) from e
            return self.path

    def delete(self) -> None:
        """Remove the profile and its backup (used by account deletion)."""
        with self.lock:
            for p in (self.path, self.backup_path):
                if p.exists():
                    p.unlink()
            logger.info("Deleted local profile %s", self.profile_id)

    def _read(self, path: Path) -> UserProfile:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise PersistenceError(f"Profile file not found: {path}") from e
        return decode_profile(text)

    def _atomic_write(self, path: Path, text: str) -> None:
        """Write text to path atomically, keeping the previous file as ``.bak``.

        Write to path.tmp, fsync, move the current file to path.bak, then
        rename path.tmp over path.
        """
        tmp = path.with_suffix(path.suffix + ".tmp")
        bak = path.with_suffix(path.suffix + ".bak")
        ensure_exists(path.parent)
        with tmp.open("w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copy2(str(path), str(bak))
        os.replace(tmp, path)
        if not bak.exists():
            shutil.copy2(str(path), str(bak))
