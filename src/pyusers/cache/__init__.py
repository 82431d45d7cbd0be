"""Cache layer for PyUsers."""

from pyusers.cache.user_cache import (
    MemoryUserCache,
    RedisUserCache,
    UserCache,
    build_user_cache,
)

__all__ = ["MemoryUserCache", "RedisUserCache", "UserCache", "build_user_cache"]
