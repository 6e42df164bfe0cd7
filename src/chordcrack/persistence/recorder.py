from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, List, Optional

from ..backend.errors import BackendError
from .errors import PersistenceError, ProfileValidationError
from .models import Achievement, GameSessionRecord, UserProfile
from .store import ProfileStore

if TYPE_CHECKING:
    from ..backend.stats_api import StatsAPI

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Records finished games locally and mirrors them to the backend.

    Local stats are always updated first. When the backend is unavailable, or
    a submission fails, the session is queued and retried by ``sync_pending``.
    """

    def __init__(
        self,
        store: ProfileStore,
        stats_api: Optional["StatsAPI"] = None,
        username: str = "",
    ) -> None:
        self.store = store
        self.stats_api = stats_api
        self._lock = threading.RLock()
        self.profile: UserProfile = store.load()
        if username:
            self.profile.username = username
        self.last_unlocked: List[Achievement] = []

    @property
    def backend_available(self) -> bool:
        return self.stats_api is not None and self.stats_api.is_available

    @property
    def pending_count(self) -> int:
        return len(self.profile.pending)

    def record_session(
        self,
        score: int,
        best_streak: int,
        correct_answers: int,
        total_questions: int,
        session_type: str,
    ) -> bool:
        """Record a finished game. Returns False when the record is rejected or cannot be saved."""
        game_type = getattr(session_type, "value", session_type)
        try:
            record = GameSessionRecord(
                score=score,
                streak=best_streak,
                correct_answers=correct_answers,
                total_questions=total_questions,
                game_type=str(game_type),
                username=self.profile.username,
            )
        except ProfileValidationError as e:
            logger.warning("Rejected game session: %s", e)
            return False

        with self._lock:
            self.profile.apply(record)
            self.last_unlocked = self.profile.check_achievements(record)
            if self.last_unlocked:
                logger.info("Achievements unlocked: %s", [a.value for a in self.last_unlocked])

            if not self._submit(record):
                self.profile.pending.append(record)
                logger.info("Queued game session %s (%d pending)", record.id, len(self.profile.pending))
            if not self._save():
                return False

        self._push_achievements(self.last_unlocked)
        return True

    def sync_pending(self) -> int:
        """Retry queued sessions; returns how many were submitted."""
        with self._lock:
            if not self.profile.pending or not self.backend_available:
                return 0
            remaining = []
            synced = 0
            for record in self.profile.pending:
                if self._submit(record):
                    synced += 1
                else:
                    remaining.append(record)
            self.profile.pending = remaining
            self._save()
        if synced:
            logger.info("Synced %d pending game sessions (%d left)", synced, len(remaining))
        return synced

    def reset(self) -> None:
        """Forget all local data (after account deletion)."""
        with self._lock:
            self.store.delete()
            self.profile = UserProfile()

    def _submit(self, record: GameSessionRecord) -> bool:
        if not self.backend_available:
            return False
        try:
            self.stats_api.submit_game_session(record)
            return True
        except BackendError as e:
            logger.error("Failed to submit game session %s: %s", record.id, e)
            return False

    def _save(self) -> bool:
        try:
            self.store.save(self.profile)
            return True
        except PersistenceError:
            logger.exception("Failed to persist profile")
            return False

    def _push_achievements(self, achievements: List[Achievement]) -> None:
        if not achievements or not self.backend_available:
            return
        for achievement in achievements:
            self.stats_api.unlock_achievement(achievement.value)
