import logging

from .database import get_db_connection


class SQLiteHandler(logging.Handler):
    """
    Stores dictation events (session starts, rejected results, imports) in the
    ``logs`` table next to the persisted learner state. Each row keeps the level
    name and ``"<logger>: <message>"``; ``timestamp`` is filled by SQLite.
    """

    def __init__(self, level=logging.INFO):
        super().__init__(level)
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    def emit(self, record):
        try:
            conn = get_db_connection()
            with conn:
                conn.execute(
                    "INSERT INTO logs (level, message) VALUES (?, ?)",
                    (record.levelname, self.format(record)),
                )
            conn.close()
        except Exception:
            self.handleError(record)
