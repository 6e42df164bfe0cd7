from __future__ import annotations

import logging
import random
import threading
from enum import Enum
from typing import List, Optional, Union

from ..audio.interfaces import AudioPlaybackService
from ..audio.null import NullAudioService
from ..audio.planner import PlaybackPlan, plan_playback
from ..catalog.catalog import ChordCatalog, default_catalog
from ..catalog.models import Chord, FingerPosition
from ..errors import UnknownChord
from .constants import (
    CORRECT_ADVANCE_DELAY,
    FINGER_REVEAL_ATTEMPT,
    INCORRECT_ADVANCE_DELAY,
    JUMBLED_HINT_ATTEMPT,
    MAX_ATTEMPTS,
    MAX_ROUNDS,
)
from .events import EventBus, GameOver, GameStarted, GuessSubmitted, HintUnlocked, RoundResolved, RoundStarted
from .hints import AudioOption, HintType, audio_options_available, hint_for_attempt, points_for_attempt
from .interfaces import ChallengeService, PersistenceService
from .scheduler import ScheduledCall, Scheduler, TimerScheduler
from .session import RoundState, SessionConfig
from .stats import FinalStats, SessionStats, SessionSummary, reconcile

logger = logging.getLogger(__name__)

GuessLike = Union[Chord, str]


class GameState(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    ANSWERED = "answered"
    GAME_OVER = "game_over"


class GameManager:
    """Round/attempt state machine for a 5-round chord-guessing session.

    States move ``WAITING -> PLAYING -> ANSWERED -> PLAYING ... -> GAME_OVER``.
    A resolved round advances after a short delay through the scheduler. The
    pending advance is tied to the round that scheduled it, so a new game
    started during the delay is never advanced by a stale timer.

    Guesses outside ``PLAYING`` (or after the last attempt) are ignored.
    Collaborator calls at game over run as background tasks and their failures
    are logged only; the game stays over either way.
    """

    def __init__(
        self,
        *,
        catalog: Optional[ChordCatalog] = None,
        audio: Optional[AudioPlaybackService] = None,
        persistence: Optional[PersistenceService] = None,
        challenge_service: Optional[ChallengeService] = None,
        scheduler: Optional[Scheduler] = None,
        bus: Optional[EventBus] = None,
        config: Optional[SessionConfig] = None,
        rng: Optional[random.Random] = None,
        correct_delay: float = CORRECT_ADVANCE_DELAY,
        incorrect_delay: float = INCORRECT_ADVANCE_DELAY,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.audio = audio or NullAudioService()
        self.persistence = persistence
        self.challenge_service = challenge_service
        self.scheduler = scheduler or TimerScheduler()
        self.bus = bus or EventBus()
        self.config = config or SessionConfig()
        self.correct_delay = correct_delay
        self.incorrect_delay = incorrect_delay
        self.max_rounds = MAX_ROUNDS
        self.max_attempts = MAX_ATTEMPTS

        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._basic_chords: List[Chord] = self.catalog.basic_chords()
        if not self._basic_chords:
            raise ValueError("Catalog has no basic chords to draw from")

        self.state = GameState.WAITING
        self.is_active = False
        self.current_round = 1
        self.score = 0
        self.streak = 0
        self.best_streak = 0
        self.total_correct = 0
        self.total_questions = 0
        self.total_games = 0
        self.selected_audio_option = AudioOption.CHORD
        self.round: Optional[RoundState] = None
        self.last_summary: Optional[SessionSummary] = None

        self._session_stats = SessionStats()
        self._round_token = 0
        self._pending_advance: Optional[ScheduledCall] = None

    # ------------------------ Read-only views ------------------------
    @property
    def current_chord(self) -> Optional[Chord]:
        return self.round.target if self.round else None

    @property
    def current_attempt(self) -> int:
        return self.round.attempt if self.round else 1

    @property
    def attempts(self) -> List[Optional[Chord]]:
        return list(self.round.guesses) if self.round else []

    @property
    def jumbled_fret_positions(self) -> List[int]:
        return list(self.round.jumbled_frets) if self.round else []

    @property
    def revealed_finger_index(self) -> Optional[int]:
        return self.round.revealed_finger_index if self.round else None

    @property
    def revealed_finger(self) -> Optional[FingerPosition]:
        idx = self.revealed_finger_index
        if idx is None or self.round is None:
            return None
        return self.round.target.fingered_positions[idx]

    @property
    def current_hint(self) -> HintType:
        return hint_for_attempt(self.current_attempt)

    @property
    def hint_description(self) -> str:
        return self.current_hint.description

    @property
    def show_audio_options(self) -> bool:
        return audio_options_available(self.current_attempt)

    @property
    def challenge_progress(self) -> float:
        if self.state is GameState.GAME_OVER:
            return 1.0
        return (self.current_round - 1) / self.max_rounds

    @property
    def has_pending_advance(self) -> bool:
        call = self._pending_advance
        return call is not None and not call.cancelled and not call.done

    # ------------------------ Game flow ------------------------
    def start_new_game(self, config: Optional[SessionConfig] = None) -> None:
        """Reset all counters and start round 1."""
        with self._lock:
            if config is not None:
                self.config = config
            self._cancel_pending_advance()
            self.current_round = 1
            self.score = 0
            self.streak = 0
            self.best_streak = 0
            self.total_correct = 0
            self.total_questions = 0
            self.is_active = True
            self.state = GameState.WAITING
            self.selected_audio_option = AudioOption.CHORD
            self.last_summary = None
            self._session_stats.reset(self.config.session_type)
            if self.config.is_challenge:
                logger.info(
                    "New %s challenge game started (challenge=%s)",
                    self.config.challenge_type.value if self.config.challenge_type else "social",
                    self.config.challenge_id,
                )
            else:
                logger.info("New game started (type=%s)", self.config.session_type.value)
            self.bus.publish(GameStarted(config=self.config, started_at=self._session_stats.start_time))
            self._start_new_round()

    def submit_guess(self, guess: GuessLike) -> bool:
        """Submit a guess for the current round.

        Returns False, changing nothing, when no guess is accepted right now.
        """
        with self._lock:
            if self.state is not GameState.PLAYING or self.round is None:
                logger.debug("Guess ignored in state %s", self.state.value)
                return False
            rnd = self.round
            if rnd.attempt > self.max_attempts:
                logger.debug("Guess ignored; attempts exhausted")
                return False

            try:
                chord = self._resolve(guess)
            except UnknownChord:
                logger.warning("Guess ignored; unknown chord %r", guess)
                return False
            rnd.guesses[rnd.attempt - 1] = chord
            correct = chord.id == rnd.target.id
            logger.debug("Round %d attempt %d: guessed %s", self.current_round, rnd.attempt, chord.id)
            self.bus.publish(GuessSubmitted(self.current_round, rnd.attempt, chord, correct))

            if correct:
                self._handle_correct_guess(rnd)
            else:
                self._handle_incorrect_guess(rnd)
            return True

    def next_round(self) -> None:
        """Advance to the next round, or end the game after the last one."""
        with self._lock:
            if not self.is_active:
                return
            self._cancel_pending_advance()
            self._advance_round()

    def end_game(self) -> None:
        """Finalize the session and hand it to the collaborators."""
        with self._lock:
            if not self.is_active:
                logger.debug("end_game ignored; no game in progress (state %s)", self.state.value)
                return
            self._cancel_pending_advance()
            self.state = GameState.GAME_OVER
            self.is_active = False
            self.total_games += 1

            live = FinalStats(self.score, self.best_streak, self.total_correct, self.total_questions)
            final = reconcile(live, self._session_stats)
            summary = SessionSummary(
                stats=final,
                session_type=self.config.session_type,
                started_at=self._session_stats.start_time,
                challenge_id=self.config.challenge_id,
            )
            self.last_summary = summary
            logger.info(
                "Game over: score=%d best_streak=%d correct=%d/%d",
                final.score,
                final.best_streak,
                final.correct_answers,
                final.total_questions,
            )
            self.bus.publish(GameOver(summary=summary, total_games=self.total_games))
            config = self.config
        self.scheduler.submit(lambda: self._finalize(summary, config))

    # ------------------------ Audio ------------------------
    def select_audio_option(self, option: AudioOption) -> None:
        with self._lock:
            self.selected_audio_option = AudioOption(option)

    def current_playback_plan(self) -> Optional[PlaybackPlan]:
        with self._lock:
            if self.round is None:
                return None
            option = self.selected_audio_option if self.show_audio_options else None
            return plan_playback(self.round.target, self.current_hint, option)

    def play_hint(self) -> bool:
        """Ask the audio service to play the current hint. False when nothing to play."""
        with self._lock:
            if self.state is not GameState.PLAYING:
                return False
            plan = self.current_playback_plan()
        if plan is None or plan.is_empty:
            return False
        try:
            self.audio.play(plan)
        except Exception:
            logger.exception("Audio playback failed for %s", plan.chord_id)
            return False
        return True

    # ------------------------ Internals ------------------------
    def _resolve(self, guess: GuessLike) -> Chord:
        if isinstance(guess, Chord):
            return guess
        return self.catalog.lookup(str(guess))

    def _start_new_round(self) -> None:
        target = self._rng.choice(self._basic_chords)
        self._round_token += 1
        self.round = RoundState(number=self.current_round, target=target, guesses=[None] * self.max_attempts)
        self.selected_audio_option = AudioOption.CHORD
        self.state = GameState.PLAYING

        self._session_stats.add_question()
        self.total_questions += 1

        self._reset_audio()
        logger.info("Round %d/%d started", self.current_round, self.max_rounds)
        logger.debug("Round %d target: %s", self.current_round, target.id)
        self.bus.publish(RoundStarted(self.current_round, target))

    def _handle_correct_guess(self, rnd: RoundState) -> None:
        points = points_for_attempt(rnd.attempt)
        self.score += points
        self.streak += 1
        self.best_streak = max(self.best_streak, self.streak)
        self.total_correct += 1
        rnd.solved = True
        self.state = GameState.ANSWERED

        self._session_stats.record_correct(points, self.streak)
        logger.info("Round %d solved on attempt %d (+%d, streak %d)", rnd.number, rnd.attempt, points, self.streak)
        self.bus.publish(RoundResolved(rnd.number, rnd.target, solved=True, points=points, attempts_used=rnd.attempt))
        self._schedule_next_round()

    def _handle_incorrect_guess(self, rnd: RoundState) -> None:
        rnd.attempt += 1
        self.streak = 0

        self._session_stats.record_incorrect()
        self._reset_audio()

        if rnd.attempt == JUMBLED_HINT_ATTEMPT:
            self._generate_jumbled_frets(rnd)
        elif rnd.attempt == FINGER_REVEAL_ATTEMPT:
            self._reveal_random_finger(rnd)

        if rnd.attempt > self.max_attempts:
            self.state = GameState.ANSWERED
            logger.info("Round %d missed; answer was %s", rnd.number, rnd.target.id)
            self.bus.publish(
                RoundResolved(rnd.number, rnd.target, solved=False, points=0, attempts_used=self.max_attempts)
            )
            self._schedule_next_round()
        else:
            self.bus.publish(HintUnlocked(rnd.number, rnd.attempt, self.current_hint))

    def _generate_jumbled_frets(self, rnd: RoundState) -> None:
        frets = [p.fret for p in rnd.target.fingered_positions]
        self._rng.shuffle(frets)
        rnd.jumbled_frets = frets
        logger.debug("Jumbled fret hint: %s", frets)

    def _reveal_random_finger(self, rnd: RoundState) -> None:
        fingered = rnd.target.fingered_positions
        if fingered:
            rnd.revealed_finger_index = self._rng.randrange(len(fingered))
            logger.debug("Revealed finger index %d", rnd.revealed_finger_index)

    def _schedule_next_round(self) -> None:
        rnd = self.round
        solved = rnd is not None and rnd.solved
        delay = self.correct_delay if solved else self.incorrect_delay
        token = self._round_token
        self._cancel_pending_advance()
        self._pending_advance = self.scheduler.call_later(delay, lambda: self._advance_if_current(token))

    def _advance_if_current(self, token: int) -> None:
        with self._lock:
            if token != self._round_token or self.state is not GameState.ANSWERED:
                logger.debug("Stale round advance ignored (token %d, current %d)", token, self._round_token)
                return
            self._pending_advance = None
            self._advance_round()

    def _advance_round(self) -> None:
        if self.current_round >= self.max_rounds:
            self.end_game()
            return
        self.current_round += 1
        self._start_new_round()

    def _cancel_pending_advance(self) -> None:
        if self._pending_advance is not None:
            self._pending_advance.cancel()
            self._pending_advance = None

    def _reset_audio(self) -> None:
        try:
            self.audio.reset_for_new_attempt()
        except Exception:
            logger.exception("Audio reset failed")

    def _finalize(self, summary: SessionSummary, config: SessionConfig) -> None:
        stats = summary.stats
        if self.persistence is not None:
            try:
                ok = self.persistence.record_session(
                    stats.score,
                    stats.best_streak,
                    stats.correct_answers,
                    stats.total_questions,
                    summary.session_type.value,
                )
                if not ok:
                    logger.warning("Session was not recorded by persistence")
            except Exception:
                logger.exception("Failed to record game session")

        if config.is_challenge and self.challenge_service is not None:
            try:
                ok = self.challenge_service.submit_challenge_score(
                    config.challenge_id,
                    stats.score,
                    stats.correct_answers,
                    stats.total_questions,
                )
            except Exception:
                logger.exception("Challenge score submission raised for %s", config.challenge_id)
                return
            if ok:
                logger.info("Challenge score submitted for %s", config.challenge_id)
            else:
                logger.error("Failed to submit challenge score for %s", config.challenge_id)
