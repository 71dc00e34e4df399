"""Rate limiting for mutating memo routes."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings


def mutation_limit() -> str:
    """Limit string for write routes, read from settings at request time."""
    return get_settings().mutation_rate_limit


# Keyed by client IP address
limiter = Limiter(key_func=get_remote_address, enabled=get_settings().rate_limit_enabled)
