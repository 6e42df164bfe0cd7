from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from ..game.constants import SocialChallengeType
from .client import SupabaseClient, eq
from .errors import (
    BackendError,
    ChallengeNotFound,
    FriendshipAlreadyExists,
    InvalidChallengeState,
    InvalidRequest,
    UserNotFound,
)
from .models import (
    BestScoreRow,
    ChallengeRow,
    ChallengeScoreRow,
    ChallengeStatus,
    Friend,
    FriendRequestStatus,
    FriendshipRow,
    LeaderboardEntry,
    UserIdRow,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _between(a: str, b: str) -> str:
    """PostgREST filter matching a friendship in either direction."""
    return f"(and(user_id.eq.{a},friend_id.eq.{b}),and(user_id.eq.{b},friend_id.eq.{a}))"


class SocialAPI:
    """Leaderboard, friends and head-to-head challenges.

    Friendships are written to the ``friends`` table and read back through the
    ``friend_requests`` view, which joins in both usernames.
    """

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    # ---------- Leaderboard ----------
    def get_leaderboard(self, limit: int = 50) -> List[LeaderboardEntry]:
        return self.client.fetch(
            "leaderboard", LeaderboardEntry, params={"select": "*", "order": "rank.asc", "limit": limit}
        )

    # ---------- Friends ----------
    def get_friends(self) -> List[Friend]:
        me = self.client.require_user_id()
        rows = self.client.fetch(
            "friend_requests",
            FriendshipRow,
            params={
                "or": f"(user_id.eq.{me},friend_id.eq.{me})",
                "status": eq(FriendRequestStatus.ACCEPTED.value),
                "select": "*",
            },
        )
        friends = []
        for row in rows:
            if row.user_id == me:
                friend_id, username = row.friend_id, row.recipient_username
            else:
                friend_id, username = row.user_id, row.requester_username
            friends.append(Friend(id=friend_id, username=username, best_score=self._best_score(friend_id)))
        return friends

    def _best_score(self, user_id: str) -> int:
        try:
            rows = self.client.fetch(
                "user_stats", BestScoreRow, params={"id": eq(user_id), "select": "best_score"}
            )
        except BackendError as e:
            logger.warning("Could not load best score for %s: %s", user_id, e)
            return 0
        return rows[0].best_score if rows else 0

    def get_friend_requests(self) -> List[FriendshipRow]:
        """Pending requests addressed to the current user."""
        me = self.client.require_user_id()
        return self.client.fetch(
            "friend_requests",
            FriendshipRow,
            params={"friend_id": eq(me), "status": eq(FriendRequestStatus.PENDING.value), "select": "*"},
        )

    def send_friend_request(self, username: str) -> None:
        me = self.client.require_user_id()
        username = (username or "").strip()
        if not username:
            raise InvalidRequest("Username must not be empty")
        targets = self.client.fetch("user_stats", UserIdRow, params={"username": eq(username), "select": "id"})
        if not targets:
            raise UserNotFound(f"No user named {username!r}")
        target = targets[0].id
        if target == me:
            raise InvalidRequest("Cannot send a friend request to yourself")
        existing = self.client.fetch("friends", UserIdRow, params={"or": _between(me, target), "select": "id"})
        if existing:
            raise FriendshipAlreadyExists(f"Friendship with {username!r} already exists")
        self.client.insert(
            "friends", {"user_id": me, "friend_id": target, "status": FriendRequestStatus.PENDING.value}
        )
        logger.info("Sent friend request to %s", username)

    def respond_to_friend_request(self, request_id: str, accept: bool) -> None:
        status = FriendRequestStatus.ACCEPTED if accept else FriendRequestStatus.DECLINED
        self.client.update("friends", {"id": eq(request_id)}, {"status": status.value, "updated_at": _now()})
        if not accept:
            self.client.delete("friends", {"id": eq(request_id)})
        logger.info("Friend request %s %s", request_id, status.value)

    def remove_friend(self, friend_id: str) -> None:
        me = self.client.require_user_id()
        self.client.delete("friends", {"or": _between(me, friend_id)})

    # ---------- Challenges ----------
    def get_challenges(self) -> List[ChallengeRow]:
        """Open challenges involving the current user, newest first."""
        me = self.client.require_user_id()
        return self.client.fetch(
            "challenges_with_users",
            ChallengeRow,
            params={
                "or": f"(challenger_id.eq.{me},opponent_id.eq.{me})",
                "status": f"neq.{ChallengeStatus.COMPLETED.value}",
                "order": "created_at.desc",
            },
        )

    def send_challenge(self, friend_id: str, challenge_type: SocialChallengeType) -> None:
        me = self.client.require_user_id()
        if not friend_id or friend_id == me:
            raise InvalidRequest("Challenge opponent must be another user")
        self.client.insert(
            "challenges",
            {
                "challenger_id": me,
                "opponent_id": friend_id,
                "challenge_type": SocialChallengeType(challenge_type).value,
                "status": ChallengeStatus.PENDING.value,
            },
        )
        logger.info("Sent %s challenge to %s", SocialChallengeType(challenge_type).value, friend_id)

    def respond_to_challenge(self, challenge_id: str, accept: bool) -> None:
        # Declined challenges are kept for history
        status = ChallengeStatus.ACTIVE if accept else ChallengeStatus.DECLINED
        self.client.update("challenges", {"id": eq(challenge_id)}, {"status": status.value, "updated_at": _now()})

    def submit_challenge_score(
        self, challenge_id: str, score: int, correct_answers: int, total_questions: int
    ) -> None:
        """Record this player's result; the challenge completes once both players have played."""
        me = self.client.require_user_id()
        rows = self.client.fetch(
            "challenges",
            ChallengeScoreRow,
            params={
                "id": eq(challenge_id),
                "select": "challenger_id,opponent_id,challenger_completed,opponent_completed",
            },
        )
        if not rows:
            raise ChallengeNotFound(f"Challenge {challenge_id} not found")
        challenge = rows[0]
        if me == challenge.challenger_id:
            role, other_done = "challenger", challenge.opponent_completed
        elif me == challenge.opponent_id:
            role, other_done = "opponent", challenge.challenger_completed
        else:
            raise InvalidChallengeState(f"User is not part of challenge {challenge_id}")
        changes = {f"{role}_score": score, f"{role}_completed": True, "updated_at": _now()}
        if other_done:
            changes["status"] = ChallengeStatus.COMPLETED.value
        self.client.update("challenges", {"id": eq(challenge_id)}, changes)
        logger.info(
            "Submitted challenge %s score=%d (%d/%d) as %s", challenge_id, score, correct_answers, total_questions, role
        )


class SocialService:
    """Challenge collaborator for the game manager: errors become False."""

    def __init__(self, api: SocialAPI) -> None:
        self.api = api

    def submit_challenge_score(
        self, challenge_id: str, score: int, correct_answers: int, total_questions: int
    ) -> bool:
        try:
            self.api.submit_challenge_score(challenge_id, score, correct_answers, total_questions)
        except BackendError as e:
            logger.error("Failed to submit challenge score for %s: %s", challenge_id, e)
            return False
        return True
