from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..persistence.models import GameSessionRecord
from .client import SupabaseClient, eq
from .errors import BackendError
from .models import AchievementRow, GameSessionRow, UserStatsRow

logger = logging.getLogger(__name__)

IGNORE_DUPLICATES = {"Prefer": "resolution=ignore-duplicates"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StatsAPI:
    """Game sessions, aggregate user stats and achievements on the backend."""

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    @property
    def is_available(self) -> bool:
        return self.client.is_authenticated

    def _username(self, fallback: str = "") -> str:
        session = self.client.session
        return (session.username if session and session.username else fallback) or "Player"

    # ---------- Sessions ----------
    def submit_game_session(self, record: GameSessionRecord) -> Optional[int]:
        """Insert a game session, then merge it into ``user_stats``.

        Returns the server id of the new session row. A failure to update the
        aggregates is logged and does not fail the submission.
        """
        user_id = self.client.require_user_id()
        username = self._username(record.username)
        row = self.client.insert(
            "game_sessions",
            {
                "user_id": user_id,
                "username": username,
                "score": record.score,
                "streak": record.streak,
                "correct_answers": record.correct_answers,
                "total_questions": record.total_questions,
                "game_type": record.game_type,
                "created_at": record.created_at,
            },
            model=GameSessionRow,
        )
        logger.info("Submitted game session %s (score=%d)", record.id, record.score)
        try:
            self._update_user_stats(user_id, username, record)
        except BackendError as e:
            logger.error("Failed to update user stats after session %s: %s", record.id, e)
        return row.id if row is not None else None

    def list_game_sessions(self) -> List[GameSessionRow]:
        user_id = self.client.require_user_id()
        return self.client.fetch(
            "game_sessions", GameSessionRow, params={"user_id": eq(user_id), "order": "created_at.desc"}
        )

    # ---------- Aggregate stats ----------
    def get_user_stats(self) -> UserStatsRow:
        user_id = self.client.require_user_id()
        return self._get_or_create_stats(user_id, self._username())

    def _get_or_create_stats(self, user_id: str, username: str) -> UserStatsRow:
        rows = self.client.fetch("user_stats", UserStatsRow, params={"id": eq(user_id), "select": "*"})
        if rows:
            return rows[0]
        logger.info("No stats found for user %s; creating initial stats", user_id)
        initial = UserStatsRow(id=user_id, username=username)
        payload = initial.model_dump()
        payload.update(created_at=_now(), updated_at=_now())
        self.client.insert("user_stats", payload, headers=IGNORE_DUPLICATES)
        return initial

    def _update_user_stats(self, user_id: str, username: str, record: GameSessionRecord) -> None:
        current = self._get_or_create_stats(user_id, username)
        total_games = current.total_games + 1
        average = (current.average_score * current.total_games + record.score) / total_games
        self.client.update(
            "user_stats",
            {"id": eq(user_id)},
            {
                "total_games": total_games,
                "best_score": max(current.best_score, record.score),
                "best_streak": max(current.best_streak, record.streak),
                "average_score": round(average, 2),
                "total_correct": current.total_correct + record.correct_answers,
                "total_questions": current.total_questions + record.total_questions,
                "updated_at": _now(),
            },
        )

    # ---------- Achievements ----------
    def get_user_achievements(self) -> List[str]:
        user_id = self.client.require_user_id()
        rows = self.client.fetch(
            "user_achievements", AchievementRow, params={"user_id": eq(user_id), "select": "achievement_id"}
        )
        return [r.achievement_id for r in rows]

    def unlock_achievement(self, achievement_id: str) -> bool:
        """Best effort: duplicates are ignored server-side, errors are logged."""
        try:
            user_id = self.client.require_user_id()
            self.client.insert(
                "user_achievements",
                {"user_id": user_id, "achievement_id": achievement_id, "unlocked_at": _now()},
                headers=IGNORE_DUPLICATES,
            )
        except BackendError as e:
            logger.error("Error unlocking achievement %s: %s", achievement_id, e)
            return False
        return True
