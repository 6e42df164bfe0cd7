from __future__ import annotations

import pytest
import requests
import responses

from chordcrack.backend import AuthSession, BackendError, NotAuthenticated, SupabaseClient, user_friendly_message
from chordcrack.backend.errors import InvalidResponse, TransientBackendError, UserNotFound
from chordcrack.backend.models import LeaderboardEntry
from chordcrack.settings import Settings

BASE = "https://proj.supabase.co/rest/v1"


def make_client(signed_in: bool = True) -> SupabaseClient:
    session = AuthSession(access_token="user-token", user_id="u1", username="alice") if signed_in else None
    return SupabaseClient(url="https://proj.supabase.co/", anon_key="anon", session=session)


def test_requires_url_and_key():
    with pytest.raises(ValueError):
        SupabaseClient(url="", anon_key="k")
    with pytest.raises(ValueError):
        SupabaseClient(url="https://x", anon_key="")


def test_from_settings():
    client = SupabaseClient.from_settings(Settings(supabase_url="https://p.supabase.co", supabase_anon_key="k"))
    assert client.rest_url == "https://p.supabase.co/rest/v1"
    assert not client.is_authenticated


@responses.activate
def test_headers_use_anon_key_when_signed_out():
    responses.add(responses.GET, f"{BASE}/leaderboard", json=[], status=200)
    make_client(signed_in=False).fetch("leaderboard", LeaderboardEntry)
    req = responses.calls[0].request
    assert req.headers["apikey"] == "anon"
    assert req.headers["Authorization"] == "Bearer anon"
    assert req.headers["Content-Type"] == "application/json"


@responses.activate
def test_headers_use_session_token_and_filters():
    responses.add(
        responses.GET,
        f"{BASE}/leaderboard",
        json=[{"rank": 1, "username": "alice", "best_score": 300, "total_games": 4, "extra": "ignored"}],
        status=200,
    )
    rows = make_client().fetch("leaderboard", LeaderboardEntry, params={"rank": "eq.1"})
    assert rows[0].username == "alice"
    req = responses.calls[0].request
    assert req.headers["Authorization"] == "Bearer user-token"
    assert "rank=eq.1" in req.url


@responses.activate
def test_error_status_raises():
    responses.add(responses.GET, f"{BASE}/leaderboard", json={"message": "bad"}, status=400)
    with pytest.raises(BackendError) as exc:
        make_client().fetch("leaderboard", LeaderboardEntry)
    assert exc.value.status_code == 400


@responses.activate
def test_unauthorized_raises_not_authenticated():
    responses.add(responses.GET, f"{BASE}/leaderboard", json={"message": "jwt expired"}, status=401)
    with pytest.raises(NotAuthenticated):
        make_client().fetch("leaderboard", LeaderboardEntry)


@responses.activate
def test_network_error_is_retried_then_raised():
    responses.add(responses.GET, f"{BASE}/leaderboard", body=requests.ConnectionError("down"))
    with pytest.raises(TransientBackendError):
        make_client().fetch("leaderboard", LeaderboardEntry)
    assert len(responses.calls) == 3


@responses.activate
def test_server_error_is_retried_until_success():
    responses.add(responses.GET, f"{BASE}/leaderboard", json={"message": "busy"}, status=503)
    responses.add(responses.GET, f"{BASE}/leaderboard", json=[{"rank": 1, "username": "a", "best_score": 9}], status=200)
    rows = make_client().fetch("leaderboard", LeaderboardEntry)
    assert rows[0].username == "a"
    assert len(responses.calls) == 2


@responses.activate
def test_client_errors_are_not_retried():
    responses.add(responses.GET, f"{BASE}/leaderboard", json={"message": "bad"}, status=400)
    with pytest.raises(BackendError):
        make_client().fetch("leaderboard", LeaderboardEntry)
    assert len(responses.calls) == 1


@responses.activate
def test_unexpected_payload_raises_invalid_response():
    responses.add(responses.GET, f"{BASE}/leaderboard", json=[{"username": "no rank"}], status=200)
    with pytest.raises(InvalidResponse):
        make_client().fetch("leaderboard", LeaderboardEntry)


def test_require_user_id():
    assert make_client().require_user_id() == "u1"
    with pytest.raises(NotAuthenticated):
        make_client(signed_in=False).require_user_id()


def test_user_friendly_messages_hide_details():
    assert user_friendly_message(requests.Timeout()) == "The request timed out. Please try again."
    assert user_friendly_message(NotAuthenticated("jwt")) == "Please sign in to continue."
    assert user_friendly_message(UserNotFound("x")) == "User not found."
    assert "technical difficulties" in user_friendly_message(RuntimeError("SQL syntax error near"))
    assert user_friendly_message(RuntimeError("???")).startswith("Something went wrong")
