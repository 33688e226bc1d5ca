import logging
import random

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile

from .config import settings
from .database import save_state
from .progress import ProgressStore, format_duration
from .scoring import score
from .sentences import build_prompt, clean_generated_sentence, fallback_sentence
from .session import SessionEngine
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Dependencies ---
def get_vocabulary(request: Request) -> VocabularyManager:
    return request.app.state.vocabulary


def get_engine(request: Request) -> SessionEngine:
    return request.app.state.engine


def get_progress(request: Request) -> ProgressStore:
    return request.app.state.progress


# --- Persistence ---
def save_vocabulary(vocabulary: VocabularyManager):
    save_state("vocabulary", [e.model_dump(mode="json") for e in vocabulary.entries])


def save_progress(progress: ProgressStore):
    save_state("session_history", [s.model_dump(mode="json") for s in progress.history])
    save_state("achievements", [a.model_dump(mode="json") for a in progress.achievements])
    save_state("total_study_time", progress.total_study_time)


# --- Vocabulary ---
@router.get("/vocabulary")
async def list_vocabulary(vocabulary: VocabularyManager = Depends(get_vocabulary)):
    return {"entries": vocabulary.entries, "stats": vocabulary.stats()}


@router.post("/vocabulary/import")
async def import_vocabulary(
    file: UploadFile = File(...),
    vocabulary: VocabularyManager = Depends(get_vocabulary),
):
    content = await file.read()
    entries = vocabulary.import_file(content, filename=file.filename)
    save_vocabulary(vocabulary)
    return {"imported": len(entries), "stats": vocabulary.stats()}


@router.post("/vocabulary/sample")
async def load_sample_vocabulary(vocabulary: VocabularyManager = Depends(get_vocabulary)):
    entries = vocabulary.load_sample_data()
    save_vocabulary(vocabulary)
    return {"imported": len(entries), "stats": vocabulary.stats()}


@router.delete("/vocabulary")
async def clear_vocabulary(vocabulary: VocabularyManager = Depends(get_vocabulary)):
    vocabulary.clear()
    save_vocabulary(vocabulary)
    return {"status": "success"}


# --- Session ---
@router.post("/session")
async def start_session(
    size: int = Form(settings.SESSION_SIZE),
    difficulty: str = Form(settings.DEFAULT_DIFFICULTY),
    vocabulary: VocabularyManager = Depends(get_vocabulary),
    engine: SessionEngine = Depends(get_engine),
):
    session = engine.create_session(vocabulary.entries, size, difficulty)
    return {"session": session, "progress": engine.progress()}


@router.get("/session/current")
async def current_word(engine: SessionEngine = Depends(get_engine)):
    progress = engine.progress()
    word = engine.current_word()
    difficulty = engine.session.difficulty
    # Same session and word always yield the same sentence.
    rng = random.Random(f"{engine.session.id}:{word.id}")
    return {
        "word": word,
        "progress": progress,
        "sentence": fallback_sentence(word.word, word.pos, difficulty, rng),
        "prompt": build_prompt(
            word.word, word.pos, word.meaning, difficulty, word.example or None
        ),
    }


@router.post("/session/next")
async def next_word(engine: SessionEngine = Depends(get_engine)):
    engine.progress()  # raises when idle
    word = engine.advance()
    return {"word": word, "has_next": word is not None, "progress": engine.progress()}


@router.post("/session/answer")
async def submit_answer(
    word_id: str = Form(...),
    answer: str = Form(""),
    expected_sentence: str = Form(...),
    vocabulary: VocabularyManager = Depends(get_vocabulary),
    engine: SessionEngine = Depends(get_engine),
):
    expected = clean_generated_sentence(expected_sentence)
    accuracy = score(expected, answer)
    result = engine.record_result(word_id, answer, expected, accuracy)
    save_vocabulary(vocabulary)
    return {"accuracy": accuracy, "result": result, "progress": engine.progress()}


@router.post("/session/complete")
async def complete_session(
    engine: SessionEngine = Depends(get_engine),
    progress: ProgressStore = Depends(get_progress),
):
    session = engine.complete_session()
    outcome = progress.record_session(session)
    save_progress(progress)
    return outcome


@router.delete("/session")
async def abandon_session(engine: SessionEngine = Depends(get_engine)):
    engine.abandon_session()
    return {"status": "success"}


# --- Progress ---
@router.get("/progress")
async def progress_overview(progress: ProgressStore = Depends(get_progress)):
    stats = progress.overall_stats()
    return {
        "stats": stats,
        "study_time": format_duration(stats.total_study_time),
        "trend": progress.performance_trend(),
        "recent": progress.recent_performance(),
        "achievements": progress.achievements,
        "recommendations": progress.recommendations(),
    }


@router.get("/progress/words")
async def word_progress(
    review: bool = False, progress: ProgressStore = Depends(get_progress)
):
    if review:
        return progress.words_needing_review()
    return progress.word_progress()


@router.get("/progress/export")
async def export_progress(
    vocabulary: VocabularyManager = Depends(get_vocabulary),
    progress: ProgressStore = Depends(get_progress),
):
    return progress.export_snapshot(vocabulary=vocabulary.entries)


@router.post("/progress/import")
async def import_progress(
    data: dict = Body(...),
    vocabulary: VocabularyManager = Depends(get_vocabulary),
    progress: ProgressStore = Depends(get_progress),
):
    snapshot = progress.import_snapshot(data)
    if snapshot.vocabulary is not None:
        vocabulary.entries = list(snapshot.vocabulary)
        logger.info(f"Restored {len(vocabulary.entries)} words from snapshot")
        save_vocabulary(vocabulary)
    save_progress(progress)
    return {"status": "success", "stats": progress.overall_stats()}


@router.delete("/progress")
async def clear_progress(progress: ProgressStore = Depends(get_progress)):
    progress.clear()
    save_progress(progress)
    return {"status": "success"}
