import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from .achievements import DEFAULT_RULES, AchievementRule, evaluate_achievements
from .config import settings
from .errors import InvalidInputError
from .models import (
    Achievement,
    AggregateStats,
    HistoricalSessionRecord,
    Recommendation,
    RecentPerformance,
    Session,
    SessionOutcome,
    Snapshot,
    StreakInfo,
    Trend,
    VocabularyEntry,
    WordProgress,
)
from .scoring import round_half_up

logger = logging.getLogger(__name__)


def session_duration_minutes(start: datetime, end: datetime) -> int:
    return max(0, round_half_up((end - start).total_seconds() / 60))


def calculate_streaks(study_dates: Iterable[date], today: date) -> StreakInfo:
    """
    Current and best runs of consecutive calendar days.

    The current run only counts when its last day is today or yesterday.
    """
    days = sorted(set(study_dates))
    if not days:
        return StreakInfo()

    best = 0
    run = 0
    previous = None
    for day in days:
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day

    current = run if (today - days[-1]).days <= 1 else 0
    return StreakInfo(current=current, best=best)


def linear_slope(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their index."""
    n = len(values)
    xs = range(n)
    sum_x = sum(xs)
    sum_y = sum(values)
    sum_xy = sum(x * y for x, y in zip(xs, values))
    sum_xx = sum(x * x for x in xs)
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    hours, remaining = divmod(minutes, 60)
    return f"{hours}h {remaining}m" if remaining > 0 else f"{hours}h"


class ProgressStore:
    """Append-only history of finished sessions and the analytics derived from it."""

    def __init__(
        self,
        history: Optional[List[HistoricalSessionRecord]] = None,
        achievements: Optional[List[Achievement]] = None,
        total_study_time: int = 0,
        rules: Sequence[AchievementRule] = DEFAULT_RULES,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.history: List[HistoricalSessionRecord] = list(history or [])
        self.achievements: List[Achievement] = list(achievements or [])
        self.total_study_time = total_study_time
        self.rules = rules
        self.clock = clock

    def record_session(self, session: Session) -> SessionOutcome:
        if session.end_time is None:
            raise InvalidInputError(f"Session {session.id} has not been completed")

        duration = session_duration_minutes(session.start_time, session.end_time)
        record = HistoricalSessionRecord(
            **session.model_dump(),
            duration=duration,
            date=session.start_time.date().isoformat(),
        )
        self.history.append(record)
        self.total_study_time += duration

        new_achievements = evaluate_achievements(
            self.rules,
            (a.id for a in self.achievements),
            self.overall_stats(),
            record,
            self.clock(),
        )
        self.achievements.extend(new_achievements)

        logger.info(
            f"Recorded session {record.id} [{record.date}, {duration} min, "
            f"{len(new_achievements)} new achievements]"
        )
        return SessionOutcome(record=record, new_achievements=new_achievements)

    def overall_stats(self) -> AggregateStats:
        if not self.history:
            return AggregateStats()

        total_sessions = len(self.history)
        total_accuracy = sum(s.average_accuracy or 0 for s in self.history)
        total_duration = sum(s.duration for s in self.history)
        streaks = self.streaks()

        return AggregateStats(
            total_sessions=total_sessions,
            total_words_studied=sum(s.completed_words for s in self.history),
            average_accuracy=round_half_up(total_accuracy / total_sessions),
            total_study_time=self.total_study_time,
            current_streak=streaks.current,
            best_streak=streaks.best,
            average_session_duration=round_half_up(total_duration / total_sessions),
        )

    def streaks(self, today: Optional[date] = None) -> StreakInfo:
        if today is None:
            today = self.clock().date()
        return calculate_streaks((s.start_time.date() for s in self.history), today)

    def recent_performance(self, n: int = settings.RECENT_SESSIONS) -> List[RecentPerformance]:
        recent = self.history[-n:] if n > 0 else []
        return [
            RecentPerformance(
                date=s.date,
                accuracy=s.average_accuracy or 0,
                words_studied=s.completed_words,
                duration=s.duration,
            )
            for s in recent
        ]

    def word_progress(self) -> List[WordProgress]:
        """Per-word results across all history, worst average accuracy first."""
        totals: Dict[str, Dict[str, Any]] = {}
        for session in self.history:
            for result in session.words:
                if not result.completed:
                    continue
                stats = totals.setdefault(
                    result.id,
                    {
                        "word": result.word,
                        "pos": result.pos,
                        "meaning": result.meaning,
                        "attempts": 0,
                        "total_accuracy": 0.0,
                        "last_studied": None,
                        "difficulty": session.difficulty,
                    },
                )
                stats["attempts"] += 1
                stats["total_accuracy"] += result.accuracy or 0
                if stats["last_studied"] is None or session.start_time > stats["last_studied"]:
                    stats["last_studied"] = session.start_time

        progress = [
            WordProgress(
                word_id=word_id,
                word=stats["word"],
                pos=stats["pos"],
                meaning=stats["meaning"],
                attempts=stats["attempts"],
                average_accuracy=stats["total_accuracy"] / stats["attempts"],
                last_studied=stats["last_studied"],
                difficulty=stats["difficulty"],
            )
            for word_id, stats in totals.items()
        ]
        progress.sort(key=lambda w: w.average_accuracy)
        return progress

    def words_needing_review(
        self,
        accuracy_threshold: float = settings.REVIEW_ACCURACY_THRESHOLD,
        max_age_days: int = settings.REVIEW_AGE_DAYS,
    ) -> List[WordProgress]:
        cutoff = self.clock() - timedelta(days=max_age_days)
        return [
            w
            for w in self.word_progress()
            if w.average_accuracy < accuracy_threshold
            or w.last_studied is None
            or w.last_studied < cutoff
        ]

    def performance_trend(
        self,
        window: int = settings.TREND_WINDOW,
        min_sessions: int = settings.TREND_MIN_SESSIONS,
        threshold: float = settings.TREND_SLOPE_THRESHOLD,
    ) -> Trend:
        if len(self.history) < min_sessions:
            return Trend.INSUFFICIENT_DATA

        accuracies = [s.average_accuracy or 0 for s in self.history[-window:]]
        slope = linear_slope(accuracies)
        if slope > threshold:
            return Trend.IMPROVING
        if slope < -threshold:
            return Trend.DECLINING
        return Trend.STABLE

    def recommendations(self) -> List[Recommendation]:
        stats = self.overall_stats()
        review = self.words_needing_review()
        recommendations = []

        if review:
            recommendations.append(
                Recommendation(
                    type="review",
                    message=f"You have {len(review)} words that could use more practice",
                    action="Review difficult words",
                )
            )
        if stats.average_accuracy < 70:
            recommendations.append(
                Recommendation(
                    type="difficulty",
                    message="Consider using easier difficulty level to build confidence",
                    action="Try beginner level",
                )
            )
        if stats.current_streak == 0:
            recommendations.append(
                Recommendation(
                    type="consistency",
                    message="Regular practice helps improve retention",
                    action="Try to study daily",
                )
            )
        if self.performance_trend() == Trend.DECLINING:
            recommendations.append(
                Recommendation(
                    type="performance",
                    message="Your recent performance shows room for improvement",
                    action="Focus on accuracy over speed",
                )
            )
        return recommendations

    def export_snapshot(
        self, vocabulary: Optional[List[VocabularyEntry]] = None
    ) -> Snapshot:
        return Snapshot(
            vocabulary=vocabulary,
            session_history=list(self.history),
            achievements=list(self.achievements),
            total_study_time=self.total_study_time,
            export_date=self.clock(),
            stats=self.overall_stats(),
        )

    def import_snapshot(self, data: Union[Snapshot, Dict[str, Any]]) -> Snapshot:
        """
        Replace history, achievements and study time with those in ``data``.

        The payload is validated as a whole before anything is applied; fields
        absent from it keep their current values.
        """
        if isinstance(data, Snapshot):
            snapshot = data
        else:
            try:
                snapshot = Snapshot.model_validate(data)
            except ValidationError as e:
                logger.error(f"Rejected progress import: {e}")
                raise InvalidInputError(f"Invalid progress data: {e}") from e

        if snapshot.session_history is not None:
            self.history = list(snapshot.session_history)
        if snapshot.achievements is not None:
            self.achievements = list(snapshot.achievements)
        if snapshot.total_study_time is not None:
            self.total_study_time = snapshot.total_study_time

        logger.info(
            f"Imported progress: {len(self.history)} sessions, "
            f"{len(self.achievements)} achievements"
        )
        return snapshot

    def clear(self):
        self.history = []
        self.achievements = []
        self.total_study_time = 0
        logger.info("Progress cleared")
