import random
import sys
from pathlib import Path

import pytest
from tenacity import wait_none

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from chordcrack.audio.null import NullAudioService  # noqa: E402
from chordcrack.backend.client import SupabaseClient  # noqa: E402
from chordcrack.game.manager import GameManager  # noqa: E402
from chordcrack.game.scheduler import ManualScheduler  # noqa: E402


class RecordingPersistence:
    def __init__(self, result=True, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def record_session(self, score, best_streak, correct_answers, total_questions, session_type):
        self.calls.append((score, best_streak, correct_answers, total_questions, session_type))
        if self.error is not None:
            raise self.error
        return self.result


class RecordingChallenges:
    def __init__(self, result=True):
        self.calls = []
        self.result = result

    def submit_challenge_score(self, challenge_id, score, correct_answers, total_questions):
        self.calls.append((challenge_id, score, correct_answers, total_questions))
        return self.result


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def persistence():
    return RecordingPersistence()


@pytest.fixture
def challenges():
    return RecordingChallenges()


@pytest.fixture
def audio():
    return NullAudioService()


@pytest.fixture
def manager(scheduler, persistence, challenges, audio):
    return GameManager(
        audio=audio,
        persistence=persistence,
        challenge_service=challenges,
        scheduler=scheduler,
        rng=random.Random(1234),
    )


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    # Never touch the real user data dir from tests
    monkeypatch.setenv("CC_DATA_DIR", str(tmp_path / "userdata"))
    for key in (
        "CC_SUPABASE_URL",
        "CC_SUPABASE_ANON_KEY",
        "CC_SETTINGS_FILE",
        "CC_TELEMETRY",
        "CC_LOG_LEVEL",
        "CC_ASSET_BASE_URL",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _no_retry_wait(monkeypatch):
    monkeypatch.setattr(SupabaseClient._send.retry, "wait", wait_none())
