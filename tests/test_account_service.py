from __future__ import annotations

import json
from pathlib import Path

import pytest
import responses

from chordcrack.backend import AccountService, AuthSession, PrivacySettings, SupabaseClient
from chordcrack.persistence import ProfileStore, SessionRecorder

BASE = "https://proj.supabase.co/rest/v1"


@pytest.fixture
def client():
    return SupabaseClient(
        url="https://proj.supabase.co",
        anon_key="anon",
        session=AuthSession(access_token="tok", user_id="u1", username="alice", email="a@example.com"),
    )


@responses.activate
def test_export_user_data(client, tmp_path: Path):
    responses.add(
        responses.GET,
        f"{BASE}/user_stats",
        json=[{"id": "u1", "username": "alice", "total_games": 2, "best_score": 300, "average_score": None}],
        status=200,
    )
    responses.add(
        responses.GET,
        f"{BASE}/game_sessions",
        json=[{"id": 1, "score": 300, "streak": 5, "correct_answers": 5, "total_questions": 5,
               "game_type": "dailyChallenge", "created_at": "2024-01-01T00:00:00Z"}],
        status=200,
    )
    responses.add(
        responses.GET,
        f"{BASE}/user_achievements",
        json=[{"achievement_id": "first_steps", "unlocked_at": "2024-01-01T00:00:00Z"}],
        status=200,
    )
    doc = json.loads(AccountService(client, data_dir=tmp_path).export_user_data())
    assert doc["user_id"] == "u1"
    assert doc["email"] == "a@example.com"
    assert doc["user_statistics"]["best_score"] == 300
    assert doc["user_statistics"]["average_score"] == 0.0
    assert doc["game_sessions"][0]["score"] == 300
    assert "id" not in doc["game_sessions"][0]
    assert doc["achievements"] == [{"achievement_id": "first_steps", "unlocked_at": "2024-01-01T00:00:00Z"}]
    assert doc["total_game_sessions"] == 1
    assert doc["data_export_version"] == "1.0"


@responses.activate
def test_delete_account_removes_everything(client, tmp_path: Path):
    for table in ("user_achievements", "game_sessions", "user_privacy_settings", "user_stats"):
        responses.add(responses.DELETE, f"{BASE}/{table}", status=204)
    recorder = SessionRecorder(ProfileStore(tmp_path))
    recorder.record_session(60, 1, 1, 5, "dailyChallenge")
    service = AccountService(client, recorder=recorder, data_dir=tmp_path)
    service._save_local(PrivacySettings())

    service.delete_account()

    urls = [c.request.url for c in responses.calls]
    assert [u.split("/rest/v1/")[1].split("?")[0] for u in urls] == [
        "user_achievements",
        "game_sessions",
        "user_privacy_settings",
        "user_stats",
    ]
    assert "id=eq.u1" in urls[-1]
    assert recorder.profile.total_games == 0
    assert not service.privacy_path.exists()
    assert not client.is_authenticated


@responses.activate
def test_privacy_settings_roundtrip(client, tmp_path: Path):
    responses.add(responses.POST, f"{BASE}/user_privacy_settings", status=201)
    service = AccountService(client, data_dir=tmp_path)
    service.update_privacy_settings(PrivacySettings(show_on_leaderboard=False))

    req = responses.calls[0].request
    assert req.headers["Prefer"] == "resolution=merge-duplicates"
    body = json.loads(req.body)
    assert body["user_id"] == "u1"
    assert body["show_on_leaderboard"] is False
    assert body["marketing_emails"] is False

    client.clear_session()
    assert service.load_privacy_settings().show_on_leaderboard is False


@responses.activate
def test_load_privacy_settings_remote_and_defaults(client, tmp_path: Path):
    responses.add(
        responses.GET,
        f"{BASE}/user_privacy_settings",
        json=[{"user_id": "u1", "share_stats": False, "show_on_leaderboard": True, "allow_friend_requests": True,
               "data_processing_consent": True, "marketing_emails": True, "updated_at": "2024-01-01"}],
        status=200,
    )
    service = AccountService(client, data_dir=tmp_path)
    loaded = service.load_privacy_settings()
    assert loaded.share_stats is False
    assert loaded.marketing_emails is True

    responses.replace(responses.GET, f"{BASE}/user_privacy_settings", json=[], status=200)
    responses.add(responses.POST, f"{BASE}/user_privacy_settings", status=201)
    assert service.load_privacy_settings() == PrivacySettings()


@responses.activate
def test_load_privacy_settings_falls_back_to_local(client, tmp_path: Path):
    responses.add(responses.GET, f"{BASE}/user_privacy_settings", json={"message": "down"}, status=503)
    assert AccountService(client, data_dir=tmp_path).load_privacy_settings() == PrivacySettings()


@responses.activate
def test_user_data_summary(client, tmp_path: Path):
    responses.add(responses.GET, f"{BASE}/user_stats", json=[{"total_games": 0}], status=200)
    responses.add(responses.GET, f"{BASE}/game_sessions", json=[{"id": 1}, {"id": 2}], status=200)
    responses.add(
        responses.GET, f"{BASE}/user_achievements", json=[{"achievement_id": "first_steps"}], status=200
    )
    summary = AccountService(client, data_dir=tmp_path).get_user_data_summary()
    # Falls back to the session count when the stats row has no games
    assert summary == {"total_game_sessions": 2, "total_achievements": 1}
