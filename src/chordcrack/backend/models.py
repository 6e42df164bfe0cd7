"""Row models for the Supabase tables and views used by ChordCrack."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FriendRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class ChallengeStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    DECLINED = "declined"
    EXPIRED = "expired"


class Row(BaseModel):
    """Base row: unknown columns are ignored so schema additions don't break clients."""

    model_config = ConfigDict(extra="ignore")


class GameSessionRow(Row):
    id: Optional[int] = None
    user_id: Optional[str] = None
    username: str = ""
    score: int = 0
    streak: int = 0
    correct_answers: int = 0
    total_questions: int = 0
    game_type: str = "dailyChallenge"
    created_at: Optional[str] = None

    def to_export_dict(self) -> Dict[str, Any]:
        return self.model_dump(include={"score", "streak", "correct_answers", "total_questions", "game_type", "created_at"})


class UserStatsRow(Row):
    id: Optional[str] = None
    username: str = ""
    total_games: int = 0
    best_score: int = 0
    best_streak: int = 0
    average_score: float = 0.0
    total_correct: int = 0
    total_questions: int = 0

    @field_validator("average_score", mode="before")
    @classmethod
    def null_average_is_zero(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    def to_export_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"id", "username"})


class AchievementRow(Row):
    achievement_id: str
    unlocked_at: Optional[str] = None

    def to_export_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class LeaderboardEntry(Row):
    rank: int
    username: str
    best_score: int = 0
    total_games: int = 0


class UserIdRow(Row):
    id: str


class BestScoreRow(Row):
    best_score: int = 0


class FriendshipRow(Row):
    """Row of the ``friend_requests`` view: a friendship with both usernames joined in."""

    id: str
    user_id: str
    friend_id: str
    status: FriendRequestStatus = FriendRequestStatus.PENDING
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    requester_username: str = ""
    recipient_username: str = ""


class Friend(BaseModel):
    id: str = Field(..., description="Friend's user id")
    username: str
    best_score: int = 0


class ChallengeRow(Row):
    """Row of the ``challenges_with_users`` view."""

    id: str
    challenger_id: str
    opponent_id: str
    challenge_type: str
    status: ChallengeStatus = ChallengeStatus.PENDING
    challenger_score: Optional[int] = None
    opponent_score: Optional[int] = None
    challenger_completed: bool = False
    opponent_completed: bool = False
    created_at: Optional[str] = None
    expires_at: Optional[str] = None
    challenger_username: str = ""
    opponent_username: str = ""

    @field_validator("challenger_completed", "opponent_completed", mode="before")
    @classmethod
    def null_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    def winner_id(self) -> Optional[str]:
        if self.status is not ChallengeStatus.COMPLETED:
            return None
        mine, theirs = self.challenger_score or 0, self.opponent_score or 0
        if mine == theirs:
            return None
        return self.challenger_id if mine > theirs else self.opponent_id


class ChallengeScoreRow(Row):
    challenger_id: str
    opponent_id: str
    challenger_completed: bool = False
    opponent_completed: bool = False


class PrivacySettings(Row):
    share_stats: bool = True
    show_on_leaderboard: bool = True
    allow_friend_requests: bool = True
    data_processing_consent: bool = True
    marketing_emails: bool = False
