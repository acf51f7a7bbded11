import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Admin endpoints (disabled when empty)
    ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Storage
    DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///telestrations.db")

    # Debug game: creating without a code reuses DEBUG_GAME_CODE, cleared on startup
    DEBUG_MODE = os.environ.get("DEBUG_MODE", "0") == "1"
    DEBUG_GAME_CODE = os.environ.get("DEBUG_GAME_CODE", "DEBUG")

    # Game defaults
    DEFAULT_NUM_ROUNDS = int(os.environ.get("DEFAULT_NUM_ROUNDS", "2"))
    DEFAULT_PROMPT_TIME_SEC = int(os.environ.get("DEFAULT_PROMPT_TIME_SEC", "60"))
    DEFAULT_DRAW_TIME_SEC = int(os.environ.get("DEFAULT_DRAW_TIME_SEC", "300"))
    DEFAULT_GUESS_TIME_SEC = int(os.environ.get("DEFAULT_GUESS_TIME_SEC", "120"))
    DEFAULT_PHASE_SECONDS = int(os.environ.get("DEFAULT_PHASE_SECONDS", "60"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))
    MAX_NAME_LENGTH = int(os.environ.get("MAX_NAME_LENGTH", "24"))
    MAX_TEXT_LENGTH = int(os.environ.get("MAX_TEXT_LENGTH", "200"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
