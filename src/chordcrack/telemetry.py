"""Local gameplay analytics.

Each game gets its own JSON-Lines file, named after the session start time,
session type and a short game id. Records are built from the typed events on
the game bus, buffered, and flushed when the game ends (or the buffer fills).
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .game.events import (
    EventBus,
    GameEventPayload,
    GameOver,
    GameStarted,
    GuessSubmitted,
    HintUnlocked,
    RoundResolved,
    RoundStarted,
)
from .paths import get_telemetry_dir

logger = logging.getLogger(__name__)


@dataclass
class TelemetryRecord:
    event: str
    ts: str
    game_id: str
    seq: int
    data: Dict[str, Any]


def event_data(event: GameEventPayload) -> Dict[str, Any]:
    """Flatten a game event into the JSON payload stored for it."""
    if isinstance(event, GameStarted):
        cfg = event.config
        return {
            "session_type": cfg.session_type.value,
            "challenge_id": cfg.challenge_id,
            "challenge_type": cfg.challenge_type.value if cfg.challenge_type else None,
        }
    if isinstance(event, RoundStarted):
        return {"round": event.round_number}
    if isinstance(event, GuessSubmitted):
        return {
            "round": event.round_number,
            "attempt": event.attempt,
            "guess": event.guess.id,
            "correct": event.correct,
        }
    if isinstance(event, HintUnlocked):
        return {"round": event.round_number, "attempt": event.attempt, "hint": event.hint.value}
    if isinstance(event, RoundResolved):
        return {
            "round": event.round_number,
            "chord": event.chord.id,
            "category": event.chord.category.value,
            "solved": event.solved,
            "points": event.points,
            "attempts": event.attempts_used,
        }
    if isinstance(event, GameOver):
        summary = event.summary
        stats = summary.stats
        duration = None
        if summary.started_at is not None:
            duration = round((summary.ended_at - summary.started_at).total_seconds(), 1)
        return {
            "session_type": summary.session_type.value,
            "score": stats.score,
            "best_streak": stats.best_streak,
            "correct": stats.correct_answers,
            "total": stats.total_questions,
            "accuracy": round(stats.accuracy, 1),
            "duration_s": duration,
            "games_played": event.total_games,
        }
    raise TypeError(f"Unsupported telemetry event: {event!r}")


class TelemetryClient:
    """Writes one JSON-Lines file per game from bus events.

    Disabled clients drop everything and never touch the disk. Events arriving
    outside a game (before the first ``GameStarted``) are ignored.
    """

    def __init__(
        self,
        enabled: bool = True,
        out_dir: Optional[Path] = None,
        build_version: str = "dev",
        flush_size: int = 50,
    ) -> None:
        self.enabled = enabled
        self.build_version = build_version
        self._lock = threading.RLock()
        self._buffer: List[TelemetryRecord] = []
        self._flush_size = max(1, flush_size)
        self._dir = Path(out_dir) if out_dir is not None else get_telemetry_dir(create=False)
        self._game_id: Optional[str] = None
        self._file: Optional[Path] = None
        self._seq = 0
        self.game_files: List[Path] = []

    @property
    def current_file(self) -> Optional[Path]:
        return self._file

    def attach(self, bus: EventBus) -> None:
        bus.subscribe_all(self.record)

    def record(self, event: GameEventPayload) -> None:
        if not self.enabled:
            return
        with self._lock:
            if isinstance(event, GameStarted):
                self._begin_game(event)
            if self._game_id is None:
                logger.debug("Telemetry event %s outside a game; dropped", event.kind.value)
                return
            self._seq += 1
            data = event_data(event)
            if isinstance(event, GameStarted):
                data["build"] = self.build_version
            self._buffer.append(
                TelemetryRecord(
                    event=event.kind.value,
                    ts=datetime.now(timezone.utc).isoformat(),
                    game_id=self._game_id,
                    seq=self._seq,
                    data=data,
                )
            )
            if isinstance(event, GameOver):
                self.flush()
                self._game_id = None
            elif len(self._buffer) >= self._flush_size:
                self.flush()

    def _begin_game(self, event: GameStarted) -> None:
        # A game abandoned without GameOver keeps what it buffered
        self.flush()
        self._game_id = uuid.uuid4().hex
        self._seq = 0
        started = event.started_at or datetime.now(timezone.utc)
        name = f"{started:%Y%m%dT%H%M%SZ}-{event.config.session_type.value}-{self._game_id[:8]}.jsonl"
        self._file = self._dir / name
        self.game_files.append(self._file)

    def flush(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            if not self._buffer or self._file is None:
                return
            self._dir.mkdir(parents=True, exist_ok=True)
            with self._file.open("a", encoding="utf-8") as f:
                for rec in self._buffer:
                    f.write(json.dumps(asdict(rec), ensure_ascii=False) + "\n")
            logger.debug("Flushed %d telemetry records to %s", len(self._buffer), self._file.name)
            self._buffer.clear()

    def close(self) -> None:
        self.flush()

    def __enter__(self) -> "TelemetryClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
