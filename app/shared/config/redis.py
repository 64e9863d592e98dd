# 📄 File: app/shared/config/redis.py
#
# 🧭 Purpose (Layman Explanation):
# Configuration for the Redis server that lets several copies of the diagnosis app
# share the same quota counters, catalog cache and free-tier usage records.
#
# 🧪 Purpose (Technical Summary):
# Redis configuration with connection pooling and the key patterns used by the
# shared-state stores (quota windows, response cache, usage ledger).
#
# 🔗 Dependencies:
# - redis Python package (asyncio client)
# - app.shared.config.settings
#
# 🔄 Connected Modules / Calls From:
# - app.shared.core.rate_limiter (RedisQuotaStore)
# - app.shared.infrastructure.cache.cache_manager (RedisCacheBackend)
# - plant_analysis usage ledger repository

from typing import Any, Dict, Optional

from redis.asyncio import ConnectionPool, Redis

from .settings import Settings, get_settings


# =============================================================================
# REDIS CONFIGURATION CLASS
# =============================================================================

class RedisConfig:
    """Redis configuration class with connection management."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._connection_pool: ConnectionPool | None = None
        self._redis_client: Redis | None = None

    @property
    def redis_url(self) -> str:
        """Get Redis connection URL."""
        return self.settings.REDIS_URL

    @property
    def connection_kwargs(self) -> Dict[str, Any]:
        """Get Redis connection configuration."""
        base_config = {
            "encoding": "utf-8",
            "decode_responses": True,
            "retry_on_timeout": True,
            "health_check_interval": 30,
        }

        if self.settings.is_production:
            base_config.update({
                "socket_timeout": 5.0,
                "socket_connect_timeout": 5.0,
                "socket_keepalive": True,
            })
        else:
            base_config.update({
                "socket_timeout": 10.0,
                "socket_connect_timeout": 10.0,
            })

        return base_config

    def create_connection_pool(self) -> ConnectionPool:
        """Create Redis connection pool."""
        if self._connection_pool is None:
            self._connection_pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                **self.connection_kwargs
            )
        return self._connection_pool

    def create_redis_client(self) -> Redis:
        """Create Redis client with connection pool."""
        if self._redis_client is None:
            pool = self.create_connection_pool()
            self._redis_client = Redis(connection_pool=pool)
        return self._redis_client

    async def close_connections(self):
        """Close Redis connections and cleanup."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None

        if self._connection_pool:
            await self._connection_pool.disconnect()
            self._connection_pool = None


# =============================================================================
# KEY PATTERNS
# =============================================================================

class StateKeys:
    """Key patterns for shared state."""

    KEY_PATTERNS = {
        "quota_count": "quota:{provider}:{caller_id}:{day}",
        "quota_last_request": "quota:{provider}:last_request",
        "catalog": "plant_catalog:{name}",
        "usage_ledger": "usage_ledger:{user_id}",
    }

    @classmethod
    def get_key(cls, pattern_name: str, **kwargs) -> str:
        """
        Generate key from pattern and parameters.

        Args:
            pattern_name: Name of the key pattern
            **kwargs: Parameters to substitute in the pattern

        Returns:
            Formatted key string
        """
        if pattern_name not in cls.KEY_PATTERNS:
            raise ValueError(f"Unknown key pattern: {pattern_name}")

        pattern = cls.KEY_PATTERNS[pattern_name]
        try:
            return pattern.format(**kwargs)
        except KeyError as e:
            raise ValueError(f"Missing parameter {e} for pattern {pattern_name}")


_redis_config: Optional[RedisConfig] = None


def get_redis_config() -> RedisConfig:
    """Get the process-wide Redis configuration."""
    global _redis_config
    if _redis_config is None:
        _redis_config = RedisConfig()
    return _redis_config


def get_redis_client() -> Redis:
    """Get a pooled Redis client."""
    return get_redis_config().create_redis_client()


async def close_redis() -> None:
    """Close pooled Redis connections if any were opened."""
    global _redis_config
    if _redis_config is not None:
        await _redis_config.close_connections()
        _redis_config = None
