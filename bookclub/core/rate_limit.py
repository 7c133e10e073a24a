"""Rate limiting configuration for the book club API."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from bookclub.core.config import settings

# In-memory storage: the API runs as a single small deployment
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    default_limits=DEFAULT_LIMITS,
)
