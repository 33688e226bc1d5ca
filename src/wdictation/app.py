import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .database import STATE_KEYS, init_db, load_state
from .errors import InvalidInputError, StateViolationError
from .log_handler import SQLiteHandler
from .models import Snapshot
from .progress import ProgressStore
from .router import router
from .session import SessionEngine
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)


# --- Logging Setup ---
def setup_logging():
    app_logger = logging.getLogger("wdictation")
    app_logger.setLevel(logging.INFO)
    app_logger.handlers.clear()

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    app_logger.addHandler(file_handler)
    if settings.LOG_TO_DB:
        init_db()
        app_logger.addHandler(SQLiteHandler())
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- State ---
def load_persisted_state() -> Snapshot:
    """Reads the stored vocabulary and progress; falls back to empty state if unreadable."""
    data = {key: load_state(key) for key in STATE_KEYS}
    try:
        return Snapshot.model_validate(data)
    except ValidationError as e:
        logger.error(f"Stored state is invalid, starting empty: {e}")
        return Snapshot()


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    snapshot = load_persisted_state()
    app.state.vocabulary = VocabularyManager(snapshot.vocabulary)
    app.state.progress = ProgressStore(
        history=snapshot.session_history,
        achievements=snapshot.achievements,
        total_study_time=snapshot.total_study_time or 0,
    )
    app.state.engine = SessionEngine()
    logger.info(
        f"Loaded {len(app.state.vocabulary.entries)} words, "
        f"{len(app.state.progress.history)} past sessions"
    )
    yield


# --- Error Handlers ---
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse({"error": exc.message}, status_code=400)


async def state_violation_handler(request: Request, exc: StateViolationError):
    return JSONResponse({"error": exc.message}, status_code=409)


# --- App Factory ---
def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )

    app.add_exception_handler(InvalidInputError, invalid_input_handler)
    app.add_exception_handler(StateViolationError, state_violation_handler)
    app.include_router(router)

    return app
