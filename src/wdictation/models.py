from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class VocabularyEntry(BaseModel):
    id: str
    word: str
    pos: str = ""
    meaning: str = ""
    example: str = ""
    date_added: Optional[datetime] = None
    times_studied: int = Field(default=0, ge=0)
    average_accuracy: float = 0.0
    last_studied: Optional[datetime] = None


class SessionWordResult(BaseModel):
    """Snapshot of a vocabulary entry plus the learner's result for it."""

    id: str
    word: str
    pos: str = ""
    meaning: str = ""
    example: str = ""
    accuracy: Optional[int] = None
    submitted_text: Optional[str] = None
    expected_text: Optional[str] = None
    completed: bool = False


class Session(BaseModel):
    id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    difficulty: Difficulty
    words: List[SessionWordResult]
    total_accuracy: float = 0.0
    completed_words: int = 0
    average_accuracy: Optional[float] = None

    @property
    def total_words(self) -> int:
        return len(self.words)


class HistoricalSessionRecord(Session):
    model_config = ConfigDict(frozen=True)

    duration: int
    date: str


class Achievement(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    earned_at: datetime
    session_id: Optional[str] = None


class AggregateStats(BaseModel):
    total_sessions: int = 0
    total_words_studied: int = 0
    average_accuracy: int = 0
    total_study_time: int = 0
    current_streak: int = 0
    best_streak: int = 0
    average_session_duration: int = 0


class StreakInfo(BaseModel):
    current: int = 0
    best: int = 0


class SessionProgress(BaseModel):
    current: int
    total: int
    completed: int
    average_accuracy: float


class RecentPerformance(BaseModel):
    date: str
    accuracy: float
    words_studied: int
    duration: int


class WordProgress(BaseModel):
    word_id: str
    word: str
    pos: str
    meaning: str
    attempts: int
    average_accuracy: float
    last_studied: Optional[datetime] = None
    difficulty: Difficulty


class Recommendation(BaseModel):
    type: str
    message: str
    action: str


class SessionOutcome(BaseModel):
    record: HistoricalSessionRecord
    new_achievements: List[Achievement]


class VocabularyStats(BaseModel):
    total_words: int
    studied_words: int
    average_accuracy: float
    recently_studied: int


class Snapshot(BaseModel):
    vocabulary: Optional[List[VocabularyEntry]] = None
    session_history: Optional[List[HistoricalSessionRecord]] = None
    achievements: Optional[List[Achievement]] = None
    total_study_time: Optional[int] = Field(default=None, ge=0)
    export_date: Optional[datetime] = None
    stats: Optional[AggregateStats] = None
