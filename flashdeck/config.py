"""
Runtime configuration read from the environment
"""
import os

# Prefer DATABASE_URL (e.g., Postgres in deployment). Fallback to local SQLite.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./flashdeck.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "60"))
AI_MAX_INPUT_CHARS = int(os.getenv("AI_MAX_INPUT_CHARS", "60000"))
AI_DEFAULT_CARD_COUNT = int(os.getenv("AI_DEFAULT_CARD_COUNT", "10"))

MAX_WORDS_PER_CHUNK = int(os.getenv("MAX_WORDS_PER_CHUNK", "120"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))

# Seconds extracted document text stays cached
TEXT_CACHE_TTL = int(os.getenv("TEXT_CACHE_TTL", "3600"))

RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
RATE_LIMIT_UPLOAD = os.getenv("RATE_LIMIT_UPLOAD", "30/minute")
RATE_LIMIT_AI = os.getenv("RATE_LIMIT_AI", "5/minute")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
