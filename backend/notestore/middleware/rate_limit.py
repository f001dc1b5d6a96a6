"""Rate limiting middleware using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from notestore.config import settings

limiter = Limiter(key_func=get_remote_address)

public_limiter = limiter.limit(settings.public_rate_limit)
