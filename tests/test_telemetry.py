from __future__ import annotations

import json
import random
from datetime import datetime, timezone
from pathlib import Path

from chordcrack.catalog import default_catalog
from chordcrack.game.constants import SocialChallengeType
from chordcrack.game.events import EventBus, GameStarted, RoundResolved
from chordcrack.game.manager import GameManager
from chordcrack.game.scheduler import ManualScheduler
from chordcrack.game.session import SessionConfig
from chordcrack.telemetry import TelemetryClient, event_data


def read_records(path: Path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def play_game(manager, scheduler):
    manager.start_new_game()
    for _ in range(5):
        manager.submit_guess(manager.current_chord)
        scheduler.advance(2.0)


def test_each_game_gets_its_own_file(tmp_path: Path):
    scheduler = ManualScheduler()
    manager = GameManager(scheduler=scheduler, rng=random.Random(9))
    client = TelemetryClient(enabled=True, out_dir=tmp_path, build_version="1.2.3")
    client.attach(manager.bus)

    play_game(manager, scheduler)
    play_game(manager, scheduler)

    assert len(client.game_files) == 2
    assert all(p.exists() for p in client.game_files)
    assert all("-dailyChallenge-" in p.name and p.suffix == ".jsonl" for p in client.game_files)

    records = read_records(client.game_files[0])
    assert [r["seq"] for r in records] == list(range(1, len(records) + 1))
    assert len({r["game_id"] for r in records}) == 1
    assert records[0]["event"] == "game_started"
    assert records[0]["data"]["build"] == "1.2.3"
    assert [r["event"] for r in records].count("round_resolved") == 5

    over = records[-1]
    assert over["event"] == "game_over"
    assert over["data"]["score"] == 300
    assert over["data"]["accuracy"] == 100.0
    assert over["data"]["games_played"] == 1
    assert read_records(client.game_files[1])[-1]["data"]["games_played"] == 2


def test_records_are_buffered_until_game_over(tmp_path: Path):
    scheduler = ManualScheduler()
    manager = GameManager(scheduler=scheduler, rng=random.Random(2))
    client = TelemetryClient(enabled=True, out_dir=tmp_path)
    client.attach(manager.bus)

    manager.start_new_game()
    manager.submit_guess(manager.current_chord)
    assert client.current_file is not None
    assert not client.current_file.exists()

    client.flush()
    assert [r["event"] for r in read_records(client.current_file)] == [
        "game_started",
        "round_started",
        "guess_submitted",
        "round_resolved",
    ]


def test_disabled_client_writes_nothing(tmp_path: Path):
    out = tmp_path / "telemetry"
    scheduler = ManualScheduler()
    manager = GameManager(scheduler=scheduler, rng=random.Random(4))
    client = TelemetryClient(enabled=False, out_dir=out)
    client.attach(manager.bus)
    play_game(manager, scheduler)
    client.close()
    assert client.game_files == []
    assert not out.exists()


def test_events_outside_a_game_are_dropped(tmp_path: Path):
    client = TelemetryClient(enabled=True, out_dir=tmp_path)
    chord = default_catalog().lookup("Am")
    client.record(RoundResolved(1, chord, solved=True, points=60, attempts_used=1))
    client.close()
    assert client.current_file is None
    assert list(tmp_path.iterdir()) == []


def test_challenge_start_payload():
    config = SessionConfig.for_challenge("ch-1", SocialChallengeType.SPEED_ROUND)
    data = event_data(GameStarted(config=config, started_at=datetime.now(timezone.utc)))
    assert data == {"session_type": "speedRound", "challenge_id": "ch-1", "challenge_type": "speedRound"}


def test_client_subscribes_to_every_game_event(tmp_path: Path):
    bus = EventBus()
    client = TelemetryClient(enabled=True, out_dir=tmp_path)
    client.attach(bus)
    started = GameStarted(config=SessionConfig(), started_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    assert bus.publish(started) == 1
    assert client.current_file.name.startswith("20260102T030405Z-dailyChallenge-")
