import random
from datetime import datetime, timedelta

import pytest

from wdictation.config import settings
from wdictation.models import VocabularyEntry
from wdictation.progress import ProgressStore
from wdictation.session import SessionEngine


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 10, 9, 0, 0))


@pytest.fixture
def rng():
    return random.Random(42)


def make_entry(word: str, pos: str = "n.", meaning: str = "", example: str = "") -> VocabularyEntry:
    return VocabularyEntry(
        id=f"id-{word.lower()}",
        word=word,
        pos=pos,
        meaning=meaning,
        example=example,
    )


@pytest.fixture
def entries():
    return [
        make_entry("Neighborhood", "n.", "鄰近地區", "The children in our neighborhood play."),
        make_entry("Accomplish", "v.", "完成", "She worked hard to accomplish her goals."),
        make_entry("Magnificent", "adj.", "壯麗的", "The view was magnificent."),
    ]


@pytest.fixture
def engine(clock, rng):
    return SessionEngine(clock=clock, rng=rng)


@pytest.fixture
def store(clock):
    return ProgressStore(clock=clock)


def run_session(engine, clock, entries, accuracies, minutes=5, difficulty="beginner"):
    """Create a session over ``entries``, record ``accuracies`` in word order and complete it."""
    session = engine.create_session(entries, len(entries), difficulty)
    for word, accuracy in zip(session.words, accuracies):
        engine.record_result(word.id, "typed", "expected", accuracy)
    clock.advance(minutes=minutes)
    return engine.complete_session()


@pytest.fixture
def tmp_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DB_DIR", str(tmp_path / "db"))
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path / "log"))
    return settings
