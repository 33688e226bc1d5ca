import logging
import random
import uuid
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from .config import settings
from .errors import InvalidInputError, StateViolationError
from .models import (
    Difficulty,
    Session,
    SessionProgress,
    SessionWordResult,
    VocabularyEntry,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EngineState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a uniformly shuffled copy of ``items``."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def update_running_average(old_avg: float, old_count: int, new_score: float) -> float:
    """Incremental mean after adding ``new_score`` to ``old_count`` prior scores."""
    n = old_count + 1
    return (old_avg * (n - 1) + new_score) / n


class SessionEngine:
    """
    Owns the lifecycle of one dictation session at a time.

    Idle -> Active on create_session, back to Idle on complete_session or
    abandon_session. Recording a result also updates the study statistics of
    the vocabulary entry the word was drawn from.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        self.clock = clock
        self.rng = rng or random.Random()
        self.session: Optional[Session] = None
        self.current_index = 0
        self._entries: Dict[str, VocabularyEntry] = {}

    @property
    def state(self) -> EngineState:
        return EngineState.ACTIVE if self.session is not None else EngineState.IDLE

    def _require_active(self, action: str) -> Session:
        if self.session is None:
            logger.warning(f"Rejected {action}: no active session")
            raise StateViolationError(f"Cannot {action}: no active session")
        return self.session

    def create_session(
        self,
        pool: Sequence[VocabularyEntry],
        size: int = settings.SESSION_SIZE,
        difficulty: Difficulty = Difficulty.BEGINNER,
    ) -> Session:
        if self.session is not None:
            logger.warning(
                f"Rejected new session: session {self.session.id} is still active"
            )
            raise StateViolationError(
                "A session is already active; complete or abandon it first"
            )
        if not pool:
            raise InvalidInputError("No vocabulary data available")
        if size < 1:
            raise InvalidInputError("Session size must be at least 1")
        try:
            difficulty = Difficulty(difficulty)
        except ValueError:
            raise InvalidInputError(f"Unknown difficulty: {difficulty}")

        selected = fisher_yates_shuffle(pool, self.rng)[:size]
        self._entries = {entry.id: entry for entry in selected}
        self.session = Session(
            id=uuid.uuid4().hex,
            start_time=self.clock(),
            difficulty=difficulty,
            words=[
                SessionWordResult(
                    id=entry.id,
                    word=entry.word,
                    pos=entry.pos,
                    meaning=entry.meaning,
                    example=entry.example,
                )
                for entry in selected
            ],
        )
        self.current_index = 0

        logger.info(
            f"New session: {self.session.id} "
            f"[Words: {len(selected)}, Difficulty: {self.session.difficulty.value}]"
        )
        return self.session

    def current_word(self) -> Optional[SessionWordResult]:
        if self.session is None or self.current_index >= len(self.session.words):
            return None
        return self.session.words[self.current_index]

    def advance(self) -> Optional[SessionWordResult]:
        """Move to the next word; None when already on the last one."""
        if self.session is not None and self.current_index < len(self.session.words) - 1:
            self.current_index += 1
            return self.current_word()
        return None

    def record_result(
        self,
        word_id: str,
        submitted_text: str,
        expected_text: str,
        accuracy: int,
    ) -> SessionWordResult:
        session = self._require_active("record a result")
        result = next((w for w in session.words if w.id == word_id), None)
        if result is None:
            raise InvalidInputError(f"Word {word_id} is not part of this session")
        if result.completed:
            logger.warning(f"Rejected duplicate result for word {word_id}")
            raise StateViolationError(f"A result for word {word_id} is already recorded")

        result.submitted_text = submitted_text
        result.expected_text = expected_text
        result.accuracy = accuracy
        result.completed = True
        session.completed_words += 1
        session.total_accuracy += accuracy

        entry = self._entries.get(word_id)
        if entry is not None:
            entry.average_accuracy = update_running_average(
                entry.average_accuracy, entry.times_studied, accuracy
            )
            entry.times_studied += 1
            entry.last_studied = self.clock()

        return result

    def progress(self) -> SessionProgress:
        session = self._require_active("report progress")
        return SessionProgress(
            current=self.current_index + 1,
            total=len(session.words),
            completed=session.completed_words,
            average_accuracy=(
                session.total_accuracy / session.completed_words
                if session.completed_words > 0
                else 0
            ),
        )

    def complete_session(self) -> Session:
        session = self._require_active("complete the session")
        session.end_time = self.clock()
        session.average_accuracy = (
            session.total_accuracy / session.completed_words
            if session.completed_words > 0
            else 0
        )
        finished = session.model_copy(deep=True)
        self._reset()

        logger.info(
            f"Completed session: {finished.id} "
            f"[{finished.completed_words}/{finished.total_words} words, "
            f"accuracy {finished.average_accuracy:.1f}]"
        )
        return finished

    def abandon_session(self) -> None:
        """Discard the active session without recording it."""
        session = self._require_active("abandon the session")
        logger.info(f"Abandoned session: {session.id}")
        self._reset()

    def _reset(self):
        self.session = None
        self.current_index = 0
        self._entries = {}
