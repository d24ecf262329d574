"""Rate limiter singleton, shared by the login and CSV import routes."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from greengrocer.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
