"""
Achievement rules and their evaluation.

Rules are plain predicates over the aggregate statistics (computed after the
triggering session was added to history) and the triggering session record.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Sequence

from .models import Achievement, AggregateStats, HistoricalSessionRecord

logger = logging.getLogger(__name__)

Predicate = Callable[[AggregateStats, HistoricalSessionRecord], bool]


@dataclass(frozen=True)
class AchievementRule:
    id: str
    name: str
    description: str
    icon: str
    predicate: Predicate


DEFAULT_RULES: List[AchievementRule] = [
    AchievementRule(
        id="first_session",
        name="Getting Started",
        description="Complete your first dictation session",
        icon="🎯",
        predicate=lambda stats, session: stats.total_sessions >= 1,
    ),
    AchievementRule(
        id="week_streak",
        name="Week Warrior",
        description="Study for 7 consecutive days",
        icon="🔥",
        predicate=lambda stats, session: stats.current_streak >= 7,
    ),
    AchievementRule(
        id="perfect_session",
        name="Perfectionist",
        description="Complete a session with 100% accuracy",
        icon="⭐",
        predicate=lambda stats, session: session.average_accuracy == 100,
    ),
    AchievementRule(
        id="hundred_words",
        name="Century Scholar",
        description="Study 100 words in total",
        icon="📚",
        predicate=lambda stats, session: stats.total_words_studied >= 100,
    ),
    AchievementRule(
        id="marathon_session",
        name="Marathon Learner",
        description="Complete a session lasting over 30 minutes",
        icon="⏰",
        predicate=lambda stats, session: session.duration >= 30,
    ),
    AchievementRule(
        id="consistency_champion",
        name="Consistency Champion",
        description="Complete 30 sessions",
        icon="🏆",
        predicate=lambda stats, session: stats.total_sessions >= 30,
    ),
    AchievementRule(
        id="accuracy_expert",
        name="Accuracy Expert",
        description="Maintain 90%+ average accuracy",
        icon="🎓",
        predicate=lambda stats, session: stats.average_accuracy >= 90,
    ),
]


def evaluate_achievements(
    rules: Sequence[AchievementRule],
    earned_ids: Iterable[str],
    stats: AggregateStats,
    session: HistoricalSessionRecord,
    now: datetime,
) -> List[Achievement]:
    """Return the achievements unlocked by ``session`` that were not earned before."""
    already_earned = set(earned_ids)
    unlocked = []
    for rule in rules:
        if rule.id in already_earned:
            continue
        if rule.predicate(stats, session):
            already_earned.add(rule.id)
            unlocked.append(
                Achievement(
                    id=rule.id,
                    name=rule.name,
                    description=rule.description,
                    icon=rule.icon,
                    earned_at=now,
                    session_id=session.id,
                )
            )
            logger.info(f"Achievement unlocked: {rule.id} [Session: {session.id}]")
    return unlocked
