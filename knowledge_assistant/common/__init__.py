"""Shared utilities."""

from .rate_limiter import RateLimiter
from .utils import clean_text, collapse_whitespace, truncate

__all__ = ["RateLimiter", "clean_text", "collapse_whitespace", "truncate"]
