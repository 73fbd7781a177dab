# app/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# In-memory storage; one limiter shared by every router
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_DEFAULT])
