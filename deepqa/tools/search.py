"""Rate limiting for outbound search and knowledge-endpoint calls."""
import time
import threading
from typing import Optional

from ..config.settings import get_config


class RateLimiter:
    """Simple rate limiter for API calls"""

    def __init__(self, calls_per_minute: int):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute if calls_per_minute > 0 else 0.0
        self.last_call = 0.0
        self._lock = threading.Lock()

    def wait(self):
        """Wait if necessary to respect rate limit"""
        with self._lock:
            now = time.time()
            elapsed = now - self.last_call
            if elapsed < self.interval:
                time.sleep(self.interval - elapsed)
            self.last_call = time.time()


# Rate limiters
_search_limiter: Optional[RateLimiter] = None
_knowledge_limiter: Optional[RateLimiter] = None
_limiter_lock = threading.Lock()


def get_search_limiter() -> RateLimiter:
    global _search_limiter
    with _limiter_lock:
        if _search_limiter is None:
            _search_limiter = RateLimiter(get_config().rate_limits.search_calls_per_minute)
    return _search_limiter


def get_knowledge_limiter() -> RateLimiter:
    global _knowledge_limiter
    with _limiter_lock:
        if _knowledge_limiter is None:
            _knowledge_limiter = RateLimiter(get_config().rate_limits.knowledge_calls_per_minute)
    return _knowledge_limiter


def reset_limiters() -> None:
    """Forget cached limiters so the next call picks up the current config."""
    global _search_limiter, _knowledge_limiter
    with _limiter_lock:
        _search_limiter = None
        _knowledge_limiter = None
