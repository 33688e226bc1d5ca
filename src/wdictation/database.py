import json
import logging
import os
import sqlite3
from typing import Any

from .config import settings

logger = logging.getLogger(__name__)

STATE_KEYS = ("vocabulary", "session_history", "achievements", "total_study_time")


def get_db_connection():
    """Establishes a connection to the SQLite database."""
    db_path = os.path.join(settings.DB_DIR, settings.DB_FILE)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables():
    """Creates the state and log tables if they don't exist."""
    conn = get_db_connection()
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT,
                message TEXT
            );
        """
        )
    conn.close()


def init_db():
    """Initializes the database and creates necessary tables."""
    if not os.path.exists(settings.DB_DIR):
        os.makedirs(settings.DB_DIR)
    create_tables()


def save_state(key: str, data: Any):
    """Stores ``data`` as JSON under ``key``, replacing any previous value."""
    conn = get_db_connection()
    with conn:
        conn.execute(
            "INSERT OR REPLACE INTO state (key, value, updated_at) "
            "VALUES (?, ?, CURRENT_TIMESTAMP)",
            (key, json.dumps(data)),
        )
    conn.close()


def load_state(key: str, default: Any = None) -> Any:
    conn = get_db_connection()
    try:
        row = conn.execute("SELECT value FROM state WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()
    if row is None:
        return default
    try:
        return json.loads(row["value"])
    except json.JSONDecodeError as e:
        logger.error(f"Stored value for {key} is not valid JSON: {e}")
        return default
