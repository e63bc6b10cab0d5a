"""
Rate limiting using slowapi
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from flashdeck.config import RATE_LIMIT_AI, RATE_LIMIT_DEFAULT, RATE_LIMIT_UPLOAD

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT_DEFAULT]
)


def upload_limit():
    """Rate limit for document upload and chunking"""
    return limiter.limit(RATE_LIMIT_UPLOAD)


def ai_generation_limit():
    """Rate limit for endpoints that call the AI service"""
    return limiter.limit(RATE_LIMIT_AI)
