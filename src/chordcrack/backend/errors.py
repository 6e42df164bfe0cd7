from __future__ import annotations

from typing import Optional

import requests

from ..errors import ChordCrackError


class BackendError(ChordCrackError):
    """Raised when the Supabase REST API returns an error or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientBackendError(BackendError):
    """Server-side (5xx) or network failure; the request may succeed if retried."""


class NotAuthenticated(BackendError):
    """Raised when a call needs a signed-in user and there is none."""


class InvalidResponse(BackendError):
    """Raised when a response body cannot be decoded into the expected rows."""


class SocialError(BackendError):
    """Base error for friend and challenge operations."""


class FriendshipAlreadyExists(SocialError):
    """You are already friends with this user."""


class FriendRequestPending(SocialError):
    """Friend request already pending."""


class UserNotFound(SocialError):
    """User not found."""


class ChallengeNotFound(SocialError):
    """Challenge not found."""


class InvalidChallengeState(SocialError):
    """Invalid challenge state."""


class InvalidRequest(SocialError):
    """Invalid request."""


_GENERIC = "Something went wrong. Please try again or contact support if the problem continues."


def user_friendly_message(error: BaseException) -> str:
    """Map an exception to a message that is safe to show to players.

    Technical details are never included; they belong in the logs.
    """
    if isinstance(error, requests.Timeout):
        return "The request timed out. Please try again."
    if isinstance(error, requests.ConnectionError):
        return "Unable to connect to our servers. Please try again later."
    if isinstance(error, NotAuthenticated):
        return "Please sign in to continue."
    if isinstance(error, SocialError):
        return (type(error).__doc__ or _GENERIC).strip()

    text = str(error).lower()
    if "database" in text or "sql" in text:
        return "We're experiencing technical difficulties. Please try again later."
    if "network" in text or "connection" in text:
        return "Please check your internet connection and try again."
    if "invalid credentials" in text or "unauthorized" in text:
        return "The email or password you entered is incorrect."
    if "already exists" in text or "already registered" in text:
        return "An account with this email already exists. Try signing in instead."
    return _GENERIC
