"""Supabase REST backend: stats, social features and account management."""
from .errors import (
    BackendError,
    ChallengeNotFound,
    FriendRequestPending,
    FriendshipAlreadyExists,
    InvalidChallengeState,
    InvalidRequest,
    InvalidResponse,
    NotAuthenticated,
    SocialError,
    TransientBackendError,
    UserNotFound,
    user_friendly_message,
)
from .client import AuthSession, SupabaseClient
from .models import ChallengeStatus, FriendRequestStatus, PrivacySettings
from .stats_api import StatsAPI
from .social import SocialAPI, SocialService
from .account import AccountService

__all__ = [
    "AccountService",
    "AuthSession",
    "BackendError",
    "ChallengeNotFound",
    "ChallengeStatus",
    "FriendRequestPending",
    "FriendRequestStatus",
    "FriendshipAlreadyExists",
    "InvalidChallengeState",
    "InvalidRequest",
    "InvalidResponse",
    "NotAuthenticated",
    "PrivacySettings",
    "SocialAPI",
    "SocialError",
    "SocialService",
    "StatsAPI",
    "SupabaseClient",
    "TransientBackendError",
    "UserNotFound",
    "user_friendly_message",
]
