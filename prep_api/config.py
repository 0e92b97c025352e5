"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'ecet_prep.db'}"
)

# Authentication
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = _parse_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 12 * 60)

# Question generation
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY")
GENERATION_MODEL = os.environ.get("GENERATION_MODEL", "claude-haiku-4-5-20251001")
GENERATION_MAX_TOKENS = _parse_int_env("GENERATION_MAX_TOKENS", 16000)
GENERATION_BATCH_SIZE = _parse_int_env("GENERATION_BATCH_SIZE", 25)
GENERATION_MAX_ATTEMPTS = _parse_int_env("GENERATION_MAX_ATTEMPTS", 3)
STATIC_BLEND = _parse_int_env("STATIC_BLEND", 5)

# Test sessions
WINDOW_POLICY = os.environ.get("WINDOW_POLICY", "gated")
SESSION_RETENTION_MINUTES = _parse_int_env("SESSION_RETENTION_MINUTES", 4 * 60)
SESSION_CLEANUP_INTERVAL_SECONDS = _parse_int_env(
    "SESSION_CLEANUP_INTERVAL_SECONDS", 10 * 60
)

# Limits
HISTORY_LIMIT = 100
BOOKMARK_LIMIT = 200
LEADERBOARD_LIMIT = 50
IMPORTANT_POOL_LIMIT = 200
STATIC_SAMPLE_SIZE = 30

# HTTP
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
