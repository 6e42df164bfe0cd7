"""Typed game events published by :class:`~chordcrack.game.manager.GameManager`.

Each event is a frozen dataclass tagged with its :class:`GameEvent` kind.
Subscribers register per kind and receive the event object itself.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from threading import RLock
from typing import TYPE_CHECKING, Callable, ClassVar, Dict, List, Optional, Union

if TYPE_CHECKING:
    from ..catalog.models import Chord
    from .hints import HintType
    from .session import SessionConfig
    from .stats import SessionSummary

logger = logging.getLogger(__name__)


class GameEvent(str, Enum):
    GAME_STARTED = "game_started"
    ROUND_STARTED = "round_started"
    GUESS_SUBMITTED = "guess_submitted"
    HINT_UNLOCKED = "hint_unlocked"
    ROUND_RESOLVED = "round_resolved"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameStarted:
    kind: ClassVar[GameEvent] = GameEvent.GAME_STARTED
    config: "SessionConfig"
    started_at: Optional[datetime]


@dataclass(frozen=True)
class RoundStarted:
    kind: ClassVar[GameEvent] = GameEvent.ROUND_STARTED
    round_number: int
    target: "Chord"


@dataclass(frozen=True)
class GuessSubmitted:
    kind: ClassVar[GameEvent] = GameEvent.GUESS_SUBMITTED
    round_number: int
    attempt: int
    guess: "Chord"
    correct: bool


@dataclass(frozen=True)
class HintUnlocked:
    kind: ClassVar[GameEvent] = GameEvent.HINT_UNLOCKED
    round_number: int
    attempt: int
    hint: "HintType"


@dataclass(frozen=True)
class RoundResolved:
    """A round ended; ``attempts_used`` counts the guesses it took (6 when missed)."""

    kind: ClassVar[GameEvent] = GameEvent.ROUND_RESOLVED
    round_number: int
    chord: "Chord"
    solved: bool
    points: int
    attempts_used: int


@dataclass(frozen=True)
class GameOver:
    kind: ClassVar[GameEvent] = GameEvent.GAME_OVER
    summary: "SessionSummary"
    total_games: int


GameEventPayload = Union[GameStarted, RoundStarted, GuessSubmitted, HintUnlocked, RoundResolved, GameOver]
Handler = Callable[[GameEventPayload], None]


class EventBus:
    """Threadsafe publish/subscribe bus for game events.

    Lets the app shell and telemetry observe the game manager without the
    manager knowing about them. Handlers run synchronously in subscription
    order; a failing handler is logged and skipped.
    """

    def __init__(self) -> None:
        self._handlers: Dict[GameEvent, List[Handler]] = {}
        self._lock = RLock()

    def subscribe(self, kind: GameEvent, handler: Handler) -> None:
        kind = GameEvent(kind)
        with self._lock:
            handlers = self._handlers.setdefault(kind, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug("Subscribed %s to %s", getattr(handler, "__name__", handler), kind.value)

    def subscribe_all(self, handler: Handler) -> None:
        for kind in GameEvent:
            self.subscribe(kind, handler)

    def unsubscribe(self, kind: GameEvent, handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(GameEvent(kind))
            if handlers and handler in handlers:
                handlers.remove(handler)

    def publish(self, event: GameEventPayload) -> int:
        """Deliver ``event`` to the handlers of its kind. Returns how many succeeded."""
        with self._lock:
            handlers = list(self._handlers.get(event.kind, []))
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %s failed for %s", getattr(handler, "__name__", handler), event.kind.value)
            else:
                delivered += 1
        return delivered
