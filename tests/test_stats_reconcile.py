from __future__ import annotations

from chordcrack.game.stats import FinalStats, SessionStats, reconcile


def shadow(score=0, best=0, correct=0, total=0):
    s = SessionStats()
    s.total_score, s.best_streak, s.correct_answers, s.total_questions = score, best, correct, total
    return s


def test_matching_tallies_pass_through():
    live = FinalStats(120, 2, 2, 5)
    assert reconcile(live, shadow(120, 2, 2, 5)) == live


def test_takes_per_field_maximum(caplog):
    result = reconcile(FinalStats(100, 1, 2, 5), shadow(120, 3, 1, 4))
    assert result == FinalStats(120, 3, 2, 5)
    assert "disagree" in caplog.text


def test_zero_questions_clamped_to_one_of_one():
    assert reconcile(FinalStats(0, 0, 0, 0), shadow()) == FinalStats(0, 0, 1, 1)


def test_more_correct_than_total_is_clamped():
    result = reconcile(FinalStats(60, 1, 3, 2), shadow(60, 1, 3, 2))
    assert result.correct_answers == 1
    assert result.total_questions == 2


def test_session_stats_tracking():
    s = SessionStats()
    s.reset()
    s.add_question()
    s.record_correct(60, 1)
    s.add_question()
    s.record_incorrect()
    assert (s.total_score, s.correct_answers, s.total_questions, s.current_streak, s.best_streak) == (60, 1, 2, 0, 1)
    assert s.start_time is not None
