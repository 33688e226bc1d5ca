import os


class Settings:
    PROJECT_NAME: str = "wdictation"
    DEBUG: bool = os.environ.get("WDICTATION_DEBUG", "") == "1"
    LOG_DIR: str = "log"
    LOG_FILE: str = "wdictation.log"
    LOG_TO_DB: bool = os.environ.get("WDICTATION_LOG_TO_DB", "") == "1"
    DB_DIR: str = os.environ.get("WDICTATION_DB_DIR", "db")
    DB_FILE: str = "wdictation.db"
    SESSION_SIZE: int = 10
    DEFAULT_DIFFICULTY: str = "beginner"
    REVIEW_ACCURACY_THRESHOLD: int = 80
    REVIEW_AGE_DAYS: int = 7
    RECENT_SESSIONS: int = 7
    TREND_WINDOW: int = 5
    TREND_MIN_SESSIONS: int = 3
    TREND_SLOPE_THRESHOLD: float = 2.0
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
