from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import ValidationError

from ..paths import get_user_data_root
from .client import SupabaseClient, eq
from .errors import BackendError
from .models import AchievementRow, GameSessionRow, PrivacySettings, UserStatsRow

if TYPE_CHECKING:
    from ..persistence.recorder import SessionRecorder

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
PRIVACY_FILE = "privacy_settings.json"

# Children before parents: user_stats is referenced by the other tables.
_DELETE_ORDER = (
    ("user_achievements", "user_id"),
    ("game_sessions", "user_id"),
    ("user_privacy_settings", "user_id"),
    ("user_stats", "id"),
)


class PrivacySettingsRow(PrivacySettings):
    user_id: str
    updated_at: Optional[str] = None


class AccountService:
    """Account management: GDPR data export, account deletion and privacy settings."""

    def __init__(
        self,
        client: SupabaseClient,
        recorder: Optional["SessionRecorder"] = None,
        data_dir: Optional[Path] = None,
    ) -> None:
        self.client = client
        self.recorder = recorder
        self._data_dir = Path(data_dir) if data_dir is not None else None

    @property
    def privacy_path(self) -> Path:
        root = self._data_dir if self._data_dir is not None else get_user_data_root()
        return root / PRIVACY_FILE

    # ---------- Export ----------
    def export_user_data(self) -> str:
        """Return every stored record for the signed-in user as a JSON document."""
        user_id = self.client.require_user_id()
        stats = self.client.fetch("user_stats", UserStatsRow, params={"id": eq(user_id)})
        sessions = self.client.fetch(
            "game_sessions", GameSessionRow, params={"user_id": eq(user_id), "order": "created_at.desc"}
        )
        achievements = self.client.fetch("user_achievements", AchievementRow, params={"user_id": eq(user_id)})
        session = self.client.session
        document: Dict[str, Any] = {
            "export_date": datetime.now(timezone.utc).isoformat(),
            "user_id": user_id,
            "username": (session.username if session else "") or "Unknown",
            "email": (session.email if session else "") or "Unknown",
            "user_statistics": stats[0].to_export_dict() if stats else {},
            "game_sessions": [s.to_export_dict() for s in sessions],
            "achievements": [a.to_export_dict() for a in achievements],
            "total_game_sessions": len(sessions),
            "data_export_version": EXPORT_VERSION,
        }
        logger.info("Exported data for user %s (%d sessions)", user_id, len(sessions))
        return json.dumps(document, indent=2, sort_keys=True)

    def get_user_data_summary(self) -> Dict[str, int]:
        user_id = self.client.require_user_id()
        stats = self.client.fetch("user_stats", UserStatsRow, params={"id": eq(user_id), "select": "total_games"})
        sessions = self.client.fetch(
            "game_sessions", GameSessionRow, params={"user_id": eq(user_id), "select": "id"}
        )
        achievements = self.client.fetch(
            "user_achievements", AchievementRow, params={"user_id": eq(user_id), "select": "achievement_id"}
        )
        total = stats[0].total_games if stats and stats[0].total_games else len(sessions)
        return {"total_game_sessions": total, "total_achievements": len(achievements)}

    # ---------- Deletion ----------
    def delete_account(self) -> None:
        """Delete all server-side data, wipe local data and sign out."""
        user_id = self.client.require_user_id()
        for table, column in _DELETE_ORDER:
            self.client.delete(table, {column: eq(user_id)})
            logger.info("Deleted %s rows for user %s", table, user_id)
        if self.recorder is not None:
            self.recorder.reset()
        path = self.privacy_path
        if path.exists():
            path.unlink()
        self.client.clear_session()

    # ---------- Privacy ----------
    def update_privacy_settings(self, settings: PrivacySettings) -> None:
        user_id = self.client.require_user_id()
        payload = settings.model_dump()
        payload.update(user_id=user_id, updated_at=datetime.now(timezone.utc).isoformat())
        self.client.insert(
            "user_privacy_settings", payload, headers={"Prefer": "resolution=merge-duplicates"}
        )
        self._save_local(settings)

    def load_privacy_settings(self) -> PrivacySettings:
        """Remote settings when signed in, else the local copy, else defaults.

        A signed-in user with no remote row gets the defaults written back.
        """
        if not self.client.is_authenticated:
            return self._load_local()
        try:
            user_id = self.client.require_user_id()
            rows = self.client.fetch("user_privacy_settings", PrivacySettingsRow, params={"user_id": eq(user_id)})
        except BackendError as e:
            logger.warning("Failed to load privacy settings: %s; using local copy", e)
            return self._load_local()
        if rows:
            settings = PrivacySettings.model_validate(rows[0].model_dump(include=set(PrivacySettings.model_fields)))
            self._save_local(settings)
            return settings
        settings = PrivacySettings()
        try:
            self.update_privacy_settings(settings)
        except BackendError as e:
            logger.warning("Could not store default privacy settings: %s", e)
        return settings

    def _save_local(self, settings: PrivacySettings) -> None:
        path = self.privacy_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")

    def _load_local(self) -> PrivacySettings:
        path = self.privacy_path
        if not path.exists():
            return PrivacySettings()
        try:
            return PrivacySettings.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable privacy settings at %s: %s", path, e)
            return PrivacySettings()

