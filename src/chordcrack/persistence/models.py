from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Set

from .errors import ProfileValidationError

# Increment when making breaking schema changes
SCHEMA_VERSION = 1

XP_PER_GAME = 100
XP_PER_LEVEL = 1000


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Achievement(str, Enum):
    FIRST_STEPS = "first_steps"
    STREAK_MASTER = "streak_master"
    PERFECT_ROUND = "perfect_round"
    BARRE_EXPERT = "barre_expert"
    BLUES_SCHOLAR = "blues_scholar"
    POWER_PLAYER = "power_player"
    CHORD_WIZARD = "chord_wizard"
    PERFECT_PITCH = "perfect_pitch"
    SPEED_DEMON = "speed_demon"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def description(self) -> str:
        return _ACHIEVEMENT_DESCRIPTIONS[self]


_ACHIEVEMENT_DESCRIPTIONS: Dict[Achievement, str] = {
    Achievement.FIRST_STEPS: "Play your first game",
    Achievement.STREAK_MASTER: "Achieve a 5+ streak",
    Achievement.PERFECT_ROUND: "Perfect game (5/5)",
    Achievement.BARRE_EXPERT: "80%+ barre chord accuracy",
    Achievement.BLUES_SCHOLAR: "70%+ blues chord accuracy",
    Achievement.POWER_PLAYER: "90%+ power chord accuracy",
    Achievement.CHORD_WIZARD: "Mixed mode mastery",
    Achievement.PERFECT_PITCH: "95%+ overall accuracy",
    Achievement.SPEED_DEMON: "High average scores",
}


@dataclass
class GameSessionRecord:
    """One finished game as stored locally and submitted to the backend."""

    score: int
    streak: int
    correct_answers: int
    total_questions: int
    game_type: str = "dailyChallenge"
    username: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=_utcnow_iso)

    def __post_init__(self) -> None:
        for name in ("score", "streak", "correct_answers"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ProfileValidationError(f"{name} must be a non-negative integer")
        if not isinstance(self.total_questions, int) or self.total_questions <= 0:
            raise ProfileValidationError("total_questions must be a positive integer")
        if self.correct_answers > self.total_questions:
            raise ProfileValidationError("correct_answers cannot exceed total_questions")
        if not self.game_type:
            raise ProfileValidationError("game_type must be a non-empty string")

    @property
    def accuracy(self) -> float:
        return self.correct_answers / self.total_questions * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "score": self.score,
            "streak": self.streak,
            "correct_answers": self.correct_answers,
            "total_questions": self.total_questions,
            "game_type": self.game_type,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "GameSessionRecord":
        try:
            return GameSessionRecord(
                id=str(data["id"]),
                username=str(data.get("username", "")),
                score=int(data["score"]),
                streak=int(data["streak"]),
                correct_answers=int(data["correct_answers"]),
                total_questions=int(data["total_questions"]),
                game_type=str(data.get("game_type", "dailyChallenge")),
                created_at=str(data.get("created_at") or _utcnow_iso()),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProfileValidationError(f"Invalid game session record: {e}") from e


@dataclass
class CategoryStats:
    sessions_played: int = 0
    best_score: int = 0
    correct_answers: int = 0
    total_questions: int = 0
    total_score: int = 0

    @property
    def average_score(self) -> float:
        return self.total_score / self.sessions_played if self.sessions_played else 0.0

    @property
    def accuracy(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return self.correct_answers / self.total_questions * 100

    def add(self, record: GameSessionRecord) -> None:
        self.sessions_played += 1
        self.best_score = max(self.best_score, record.score)
        self.correct_answers += record.correct_answers
        self.total_questions += record.total_questions
        self.total_score += record.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessions_played": self.sessions_played,
            "best_score": self.best_score,
            "correct_answers": self.correct_answers,
            "total_questions": self.total_questions,
            "total_score": self.total_score,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CategoryStats":
        return CategoryStats(
            sessions_played=int(data.get("sessions_played", 0)),
            best_score=int(data.get("best_score", 0)),
            correct_answers=int(data.get("correct_answers", 0)),
            total_questions=int(data.get("total_questions", 0)),
            total_score=int(data.get("total_score", 0)),
        )


@dataclass
class UserProfile:
    """Local player profile: aggregates, history, achievements and the offline queue."""

    username: str = ""
    total_games: int = 0
    best_score: int = 0
    best_streak: int = 0
    total_correct: int = 0
    total_questions: int = 0
    total_score: int = 0
    history: List[GameSessionRecord] = field(default_factory=list)
    pending: List[GameSessionRecord] = field(default_factory=list)
    category_stats: Dict[str, CategoryStats] = field(default_factory=dict)
    achievements: Set[Achievement] = field(default_factory=set)
    has_seen_tutorial: bool = False
    schema_version: int = SCHEMA_VERSION
    updated_at: str = field(default_factory=_utcnow_iso)

    # Derived stats

    @property
    def average_score(self) -> float:
        return self.total_score / self.total_games if self.total_games else 0.0

    @property
    def overall_accuracy(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return self.total_correct / self.total_questions * 100

    @property
    def current_xp(self) -> int:
        return max(0, self.total_games * XP_PER_GAME + self.best_score)

    @property
    def current_level(self) -> int:
        return max(1, self.current_xp // XP_PER_LEVEL + 1)

    @property
    def level_progress(self) -> float:
        return max(0.0, min(1.0, (self.current_xp % XP_PER_LEVEL) / XP_PER_LEVEL))

    def category_accuracy(self, category: str) -> float:
        stats = self.category_stats.get(category)
        return stats.accuracy if stats else 0.0

    # Mutation

    def apply(self, record: GameSessionRecord) -> None:
        """Fold a finished session into the aggregates and history."""
        self.total_games += 1
        self.best_score = max(self.best_score, record.score)
        self.best_streak = max(self.best_streak, record.streak)
        self.total_correct += record.correct_answers
        self.total_questions += record.total_questions
        self.total_score += record.score
        self.category_stats.setdefault(record.game_type, CategoryStats()).add(record)
        self.history.append(record)
        self.touch()

    def check_achievements(self, record: GameSessionRecord) -> List[Achievement]:
        """Unlock achievements earned by ``record``; return the newly unlocked ones."""
        earned = []
        if self.total_games >= 1:
            earned.append(Achievement.FIRST_STEPS)
        if record.streak >= 5:
            earned.append(Achievement.STREAK_MASTER)
        if record.correct_answers == record.total_questions and record.total_questions >= 5:
            earned.append(Achievement.PERFECT_ROUND)
        if self.category_accuracy("powerChords") >= 90:
            earned.append(Achievement.POWER_PLAYER)
        if self.overall_accuracy >= 95:
            earned.append(Achievement.PERFECT_PITCH)
        new = [a for a in earned if a not in self.achievements]
        self.achievements.update(new)
        return new

    def touch(self) -> None:
        self.updated_at = _utcnow_iso()

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "username": self.username,
            "total_games": self.total_games,
            "best_score": self.best_score,
            "best_streak": self.best_streak,
            "total_correct": self.total_correct,
            "total_questions": self.total_questions,
            "total_score": self.total_score,
            "history": [r.to_dict() for r in self.history],
            "pending": [r.to_dict() for r in self.pending],
            "category_stats": {k: v.to_dict() for k, v in sorted(self.category_stats.items())},
            "achievements": sorted(a.value for a in self.achievements),
            "has_seen_tutorial": self.has_seen_tutorial,
            "updated_at": self.updated_at,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "UserProfile":
        if not isinstance(data, dict):
            raise ProfileValidationError("Profile must be a JSON object")
        achievements: Set[Achievement] = set()
        for raw in data.get("achievements", []):
            try:
                achievements.add(Achievement(raw))
            except ValueError:
                # Unknown ids from newer versions are dropped
                continue
        try:
            return UserProfile(
                username=str(data.get("username", "")),
                total_games=int(data.get("total_games", 0)),
                best_score=int(data.get("best_score", 0)),
                best_streak=int(data.get("best_streak", 0)),
                total_correct=int(data.get("total_correct", 0)),
                total_questions=int(data.get("total_questions", 0)),
                total_score=int(data.get("total_score", 0)),
                history=[GameSessionRecord.from_dict(r) for r in data.get("history", [])],
                pending=[GameSessionRecord.from_dict(r) for r in data.get("pending", [])],
                category_stats={
                    str(k): CategoryStats.from_dict(v) for k, v in (data.get("category_stats") or {}).items()
                },
                achievements=achievements,
                has_seen_tutorial=bool(data.get("has_seen_tutorial", False)),
                schema_version=int(data.get("schema_version", SCHEMA_VERSION)),
                updated_at=str(data.get("updated_at") or _utcnow_iso()),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ProfileValidationError(f"Invalid profile data: {e}") from e
