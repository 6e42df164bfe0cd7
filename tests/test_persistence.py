from __future__ import annotations

import json
from pathlib import Path

import pytest

from chordcrack.backend.errors import BackendError
from chordcrack.persistence import (
    Achievement,
    CorruptProfileError,
    GameSessionRecord,
    ProfileStore,
    ProfileValidationError,
    SessionRecorder,
    UserProfile,
)


class FakeStatsAPI:
    def __init__(self, available=True, fail=False):
        self.is_available = available
        self.fail = fail
        self.submitted = []
        self.unlocked = []

    def submit_game_session(self, record):
        if self.fail:
            raise BackendError("offline")
        self.submitted.append(record)
        return len(self.submitted)

    def unlock_achievement(self, achievement_id):
        self.unlocked.append(achievement_id)
        return True


def test_store_roundtrip_and_backup(tmp_path: Path):
    store = ProfileStore(tmp_path, profile_id="alice")
    assert store.load().total_games == 0

    profile = UserProfile(username="alice")
    profile.apply(GameSessionRecord(score=120, streak=2, correct_answers=3, total_questions=5))
    store.save(profile)
    assert store.path == tmp_path / "profiles" / "alice.json"
    assert store.backup_path.exists()

    loaded = store.load()
    assert loaded.username == "alice"
    assert loaded.total_games == 1
    assert loaded.history[0].score == 120
    assert not store.path.with_suffix(".json.tmp").exists()


def test_store_recovers_from_backup(tmp_path: Path):
    store = ProfileStore(tmp_path)
    profile = UserProfile(username="bob")
    store.save(profile)
    profile.total_games = 3
    store.save(profile)
    store.path.write_text("{not json", encoding="utf-8")
    recovered = store.load()
    assert recovered.username == "bob"


def test_store_raises_when_all_copies_corrupt(tmp_path: Path):
    store = ProfileStore(tmp_path)
    store.save(UserProfile())
    store.path.write_text("garbage", encoding="utf-8")
    store.backup_path.write_text("garbage", encoding="utf-8")
    with pytest.raises(CorruptProfileError):
        store.load()


def test_store_rejects_future_schema(tmp_path: Path):
    store = ProfileStore(tmp_path)
    store.path.write_text(json.dumps({"schema_version": 99}), encoding="utf-8")
    with pytest.raises(CorruptProfileError):
        store.load()


def test_profile_id_is_sanitized(tmp_path: Path):
    store = ProfileStore(tmp_path, profile_id="../../etc/passwd")
    assert store.path.parent == tmp_path / "profiles"


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(score=-1, streak=0, correct_answers=0, total_questions=1),
        dict(score=0, streak=-1, correct_answers=0, total_questions=1),
        dict(score=0, streak=0, correct_answers=0, total_questions=0),
        dict(score=0, streak=0, correct_answers=3, total_questions=2),
    ],
)
def test_invalid_records_rejected(kwargs):
    with pytest.raises(ProfileValidationError):
        GameSessionRecord(**kwargs)


def test_derived_stats():
    p = UserProfile()
    p.apply(GameSessionRecord(score=300, streak=5, correct_answers=5, total_questions=5, game_type="powerChords"))
    p.apply(GameSessionRecord(score=100, streak=1, correct_answers=2, total_questions=5, game_type="powerChords"))
    assert p.total_games == 2
    assert p.best_score == 300
    assert p.average_score == 200.0
    assert p.overall_accuracy == 70.0
    assert p.current_xp == 500
    assert p.current_level == 1
    assert p.level_progress == 0.5
    assert p.category_accuracy("powerChords") == 70.0
    assert p.category_accuracy("bluesChords") == 0.0


def test_level_grows_every_thousand_xp():
    p = UserProfile(total_games=9, best_score=150)
    assert p.current_xp == 1050
    assert p.current_level == 2


def test_recorder_rejects_invalid_sessions(tmp_path: Path):
    recorder = SessionRecorder(ProfileStore(tmp_path))
    assert recorder.record_session(10, 1, 2, 1, "dailyChallenge") is False
    assert recorder.record_session(10, 1, 0, 0, "dailyChallenge") is False
    assert recorder.profile.total_games == 0


def test_recorder_updates_stats_and_achievements(tmp_path: Path):
    api = FakeStatsAPI()
    recorder = SessionRecorder(ProfileStore(tmp_path), stats_api=api, username="cara")
    assert recorder.record_session(300, 5, 5, 5, "dailyChallenge") is True
    profile = recorder.profile
    assert profile.total_games == 1
    assert profile.category_stats["dailyChallenge"].sessions_played == 1
    assert {Achievement.FIRST_STEPS, Achievement.STREAK_MASTER, Achievement.PERFECT_ROUND, Achievement.PERFECT_PITCH} <= profile.achievements
    assert Achievement.POWER_PLAYER not in profile.achievements
    assert len(api.submitted) == 1
    assert api.submitted[0].username == "cara"
    assert "first_steps" in api.unlocked
    assert recorder.pending_count == 0

    # Achievements unlock once
    recorder.record_session(300, 5, 5, 5, "dailyChallenge")
    assert recorder.last_unlocked == []


def test_offline_sessions_are_queued_and_survive_reload(tmp_path: Path):
    store = ProfileStore(tmp_path)
    recorder = SessionRecorder(store)
    assert recorder.record_session(120, 2, 3, 5, "basicChords") is True
    assert recorder.pending_count == 1

    reloaded = SessionRecorder(ProfileStore(tmp_path), stats_api=FakeStatsAPI(fail=True))
    assert reloaded.pending_count == 1
    assert reloaded.sync_pending() == 0
    assert reloaded.pending_count == 1

    api = FakeStatsAPI()
    synced = SessionRecorder(ProfileStore(tmp_path), stats_api=api)
    assert synced.sync_pending() == 1
    assert synced.pending_count == 0
    assert api.submitted[0].score == 120
    assert SessionRecorder(ProfileStore(tmp_path)).pending_count == 0


def test_failed_submission_is_queued(tmp_path: Path):
    recorder = SessionRecorder(ProfileStore(tmp_path), stats_api=FakeStatsAPI(fail=True))
    assert recorder.record_session(60, 1, 1, 5, "dailyChallenge") is True
    assert recorder.pending_count == 1


def test_recorder_accepts_session_type_enum(tmp_path: Path):
    from chordcrack.game.constants import SessionType

    recorder = SessionRecorder(ProfileStore(tmp_path))
    recorder.record_session(50, 1, 1, 5, SessionType.BARRE_CHORDS)
    assert "barreChords" in recorder.profile.category_stats


def test_reset_wipes_local_profile(tmp_path: Path):
    store = ProfileStore(tmp_path)
    recorder = SessionRecorder(store)
    recorder.record_session(60, 1, 1, 5, "dailyChallenge")
    recorder.reset()
    assert not store.exists()
    assert recorder.profile.total_games == 0
