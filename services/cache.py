# services/cache.py - Simple in-memory cache with TTL
import time
from typing import Any, Optional


class SimpleCache:
    """Simple in-memory cache with TTL (time-to-live)"""

    def __init__(self):
        self._cache = {}

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired"""
        if key in self._cache:
            value, expires_at = self._cache[key]
            if time.time() < expires_at:
                return value
            else:
                del self._cache[key]
        return None

    def set(self, key: str, value: Any, ttl_seconds: int = 300):
        """Set value in cache with TTL (default 5 minutes)"""
        expires_at = time.time() + ttl_seconds
        self._cache[key] = (value, expires_at)

    def pop(self, key: str) -> Optional[Any]:
        """Remove a key and return its value if it had not expired"""
        value = self.get(key)
        self._cache.pop(key, None)
        return value
