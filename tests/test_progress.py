"""
Tests for progress analytics

Tests cover:
- Recording finished sessions (duration, date, study time)
- Aggregate statistics and streaks
- Word-level progress and review candidates
- Performance trend
- Snapshot export / import
"""

from datetime import date, datetime, timedelta

import pytest

from conftest import make_entry, run_session
from wdictation.errors import InvalidInputError
from wdictation.models import Difficulty, HistoricalSessionRecord, Trend
from wdictation.progress import (
    ProgressStore,
    calculate_streaks,
    format_duration,
    linear_slope,
    session_duration_minutes,
)


def record_at(store, start, accuracy, words=2, minutes=5, word_results=None):
    """Append a history record starting at ``start`` with the given average accuracy."""
    record = HistoricalSessionRecord(
        id=f"s-{len(store.history)}",
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        difficulty=Difficulty.BEGINNER,
        words=word_results or [],
        total_accuracy=accuracy * words,
        completed_words=words,
        average_accuracy=accuracy,
        duration=minutes,
        date=start.date().isoformat(),
    )
    store.history.append(record)
    store.total_study_time += minutes
    return record


class TestDuration:
    def test_rounds_to_whole_minutes(self):
        start = datetime(2024, 1, 1, 10, 0, 0)
        assert session_duration_minutes(start, start + timedelta(seconds=89)) == 1
        assert session_duration_minutes(start, start + timedelta(seconds=90)) == 2

    @pytest.mark.parametrize(
        "minutes, expected", [(0, "0m"), (45, "45m"), (120, "2h"), (65, "1h 5m")]
    )
    def test_format_duration(self, minutes, expected):
        assert format_duration(minutes) == expected


class TestRecordSession:
    def test_enriches_and_appends(self, engine, store, clock, entries):
        finished = run_session(engine, clock, entries, [80, 90, 100], minutes=12)
        outcome = store.record_session(finished)

        assert outcome.record.duration == 12
        assert outcome.record.date == "2024-03-10"
        assert store.history == [outcome.record]
        assert store.total_study_time == 12

    def test_unfinished_session_is_rejected(self, engine, store, entries):
        session = engine.create_session(entries, 3, "beginner")
        with pytest.raises(InvalidInputError):
            store.record_session(session)

    def test_record_is_immutable(self, engine, store, clock, entries):
        outcome = store.record_session(run_session(engine, clock, entries, [50]))
        with pytest.raises(Exception):
            outcome.record.duration = 99


class TestOverallStats:
    def test_empty_history_is_all_zero(self, store):
        stats = store.overall_stats()
        assert stats.total_sessions == 0
        assert stats.total_words_studied == 0
        assert stats.average_accuracy == 0
        assert stats.total_study_time == 0
        assert stats.current_streak == 0
        assert stats.best_streak == 0
        assert stats.average_session_duration == 0

    def test_aggregates_history(self, store, clock):
        record_at(store, clock.now - timedelta(days=1), 80, words=4, minutes=10)
        record_at(store, clock.now, 91, words=6, minutes=5)

        stats = store.overall_stats()

        assert stats.total_sessions == 2
        assert stats.total_words_studied == 10
        assert stats.average_accuracy == 86
        assert stats.total_study_time == 15
        assert stats.average_session_duration == 8
        assert stats.current_streak == 2
        assert stats.best_streak == 2


class TestStreaks:
    def test_three_consecutive_days_ending_today(self):
        days = [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        streaks = calculate_streaks(days, today=date(2024, 1, 3))
        assert streaks.current == 3
        assert streaks.best == 3

    def test_gap_breaks_current_streak(self):
        days = [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 5)]
        streaks = calculate_streaks(days, today=date(2024, 1, 8))
        assert streaks.current == 0
        assert streaks.best == 2

    def test_yesterday_keeps_streak_alive(self):
        days = [date(2024, 1, 4), date(2024, 1, 5)]
        assert calculate_streaks(days, today=date(2024, 1, 6)).current == 2

    def test_multiple_sessions_per_day_count_once(self):
        days = [date(2024, 1, 1), date(2024, 1, 1), date(2024, 1, 2)]
        assert calculate_streaks(days, today=date(2024, 1, 2)).best == 2

    def test_best_run_can_be_in_the_past(self):
        days = [date(2024, 1, d) for d in (1, 2, 3, 4, 10, 11)]
        streaks = calculate_streaks(days, today=date(2024, 1, 11))
        assert streaks.current == 2
        assert streaks.best == 4

    def test_no_dates(self):
        streaks = calculate_streaks([], today=date(2024, 1, 1))
        assert (streaks.current, streaks.best) == (0, 0)

    def test_store_uses_its_clock(self, store, clock):
        record_at(store, clock.now - timedelta(days=2), 80)
        record_at(store, clock.now - timedelta(days=1), 80)
        assert store.streaks().current == 2
        clock.advance(days=2)
        assert store.streaks().current == 0
        assert store.streaks().best == 2


class TestRecentPerformance:
    def test_last_n_in_chronological_order(self, store, clock):
        for i in range(9):
            record_at(store, clock.now - timedelta(days=9 - i), 50 + i)
        recent = store.recent_performance()
        assert len(recent) == 7
        assert [r.accuracy for r in recent] == [52, 53, 54, 55, 56, 57, 58]
        assert recent[-1].date == (clock.now - timedelta(days=1)).date().isoformat()

    def test_custom_window(self, store, clock):
        record_at(store, clock.now, 70)
        record_at(store, clock.now, 75)
        assert [r.accuracy for r in store.recent_performance(1)] == [75]


class TestWordProgress:
    def test_aggregates_across_sessions_worst_first(self, engine, store, clock):
        pool = [make_entry("Alpha"), make_entry("Beta")]
        first = engine.create_session(pool, 2, "beginner")
        scores = {"id-alpha": 100, "id-beta": 40}
        for word in first.words:
            engine.record_result(word.id, "a", "b", scores[word.id])
        store.record_session(engine.complete_session())

        clock.advance(days=1)
        second = engine.create_session(pool, 2, "advanced")
        engine.record_result("id-alpha", "a", "b", 80)
        store.record_session(engine.complete_session())

        progress = store.word_progress()

        assert [w.word_id for w in progress] == ["id-beta", "id-alpha"]
        beta, alpha = progress
        assert beta.attempts == 1
        assert beta.average_accuracy == 40
        assert alpha.attempts == 2
        assert alpha.average_accuracy == 90
        assert alpha.last_studied == second.start_time
        assert alpha.difficulty == Difficulty.BEGINNER

    def test_incomplete_words_are_ignored(self, engine, store, clock, entries):
        store.record_session(run_session(engine, clock, entries, [70]))
        assert len(store.word_progress()) == 1

    def test_review_candidates(self, engine, store, clock):
        pool = [make_entry("Alpha"), make_entry("Beta"), make_entry("Gamma")]
        engine.create_session(pool, 3, "beginner")
        engine.record_result("id-alpha", "a", "b", 95)
        engine.record_result("id-beta", "a", "b", 60)
        store.record_session(engine.complete_session())

        clock.advance(days=8)
        engine.create_session([make_entry("Gamma")], 1, "beginner")
        engine.record_result("id-gamma", "a", "b", 100)
        store.record_session(engine.complete_session())

        review = {w.word_id for w in store.words_needing_review()}
        assert review == {"id-alpha", "id-beta"}


class TestPerformanceTrend:
    def test_insufficient_data(self, store, clock):
        record_at(store, clock.now, 50)
        record_at(store, clock.now, 90)
        assert store.performance_trend() == Trend.INSUFFICIENT_DATA

    def test_improving(self, store, clock):
        for accuracy in [50, 55, 60, 65, 70]:
            record_at(store, clock.now, accuracy)
        assert store.performance_trend() == Trend.IMPROVING

    def test_declining(self, store, clock):
        for accuracy in [90, 80, 70]:
            record_at(store, clock.now, accuracy)
        assert store.performance_trend() == Trend.DECLINING

    def test_stable(self, store, clock):
        for accuracy in [80, 81, 79, 80]:
            record_at(store, clock.now, accuracy)
        assert store.performance_trend() == Trend.STABLE

    def test_only_last_five_sessions_count(self, store, clock):
        for accuracy in [100, 100, 100, 10, 20, 30, 40, 50]:
            record_at(store, clock.now, accuracy)
        assert store.performance_trend() == Trend.IMPROVING

    def test_slope(self):
        assert linear_slope([50, 55, 60, 65, 70]) == 5
        assert linear_slope([7]) == 0


class TestRecommendations:
    def test_struggling_learner_gets_all_advice(self, store, clock):
        clock.advance(days=30)
        for accuracy in [70, 60, 50]:
            record_at(store, clock.now - timedelta(days=10), accuracy)
        types = [r.type for r in store.recommendations()]
        assert types == ["difficulty", "consistency", "performance"]

    def test_no_history(self, store):
        assert [r.type for r in store.recommendations()] == ["difficulty", "consistency"]

    def test_review_advice(self, engine, store, clock, entries):
        store.record_session(run_session(engine, clock, entries, [40]))
        assert store.recommendations()[0].type == "review"


class TestSnapshot:
    def test_round_trip_reproduces_stats(self, engine, store, clock, entries):
        store.record_session(run_session(engine, clock, entries, [100, 100, 100], minutes=31))
        clock.advance(days=1)
        store.record_session(run_session(engine, clock, entries, [60, 70], minutes=8))

        data = store.export_snapshot().model_dump(mode="json")
        restored = ProgressStore(clock=clock)
        restored.import_snapshot(data)

        assert restored.overall_stats() == store.overall_stats()
        assert [a.id for a in restored.achievements] == [a.id for a in store.achievements]
        assert restored.word_progress() == store.word_progress()

    def test_export_contains_stats_and_vocabulary(self, store, clock, entries):
        snapshot = store.export_snapshot(vocabulary=entries)
        assert snapshot.vocabulary == entries
        assert snapshot.export_date == clock.now
        assert snapshot.stats.total_sessions == 0

    def test_only_present_fields_are_replaced(self, store, clock):
        record_at(store, clock.now, 80, minutes=20)
        store.import_snapshot({"total_study_time": 500})
        assert len(store.history) == 1
        assert store.total_study_time == 500

    def test_invalid_payload_changes_nothing(self, store, clock):
        record_at(store, clock.now, 80, minutes=20)
        with pytest.raises(InvalidInputError):
            store.import_snapshot(
                {"total_study_time": 5, "session_history": [{"id": "broken"}]}
            )
        assert store.total_study_time == 20
        assert len(store.history) == 1

    def test_clear(self, engine, store, clock, entries):
        store.record_session(run_session(engine, clock, entries, [90]))
        store.clear()
        assert store.history == []
        assert store.achievements == []
        assert store.total_study_time == 0
