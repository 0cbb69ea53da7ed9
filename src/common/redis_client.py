"""Redis connection management for the persistent translation cache."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from common.config import settings

logger = logging.getLogger(__name__)


class RedisConnection:
    """Async Redis connection with retrying connect and on-demand reconnect."""

    def __init__(self, url: Optional[str] = None):
        """
        Initialize the connection holder.

        Args:
            url: Redis URL (defaults to settings.redis_url)
        """
        self.url = url or settings.redis_url
        self.client: Optional[Redis] = None
        self.connected: bool = False
        self._reconnect_lock: Optional[asyncio.Lock] = None
        self._last_health_check: Optional[datetime] = None

    @property
    def reconnect_lock(self) -> asyncio.Lock:
        """Lazy initialization of reconnect lock (must be created within event loop)."""
        if self._reconnect_lock is None:
            self._reconnect_lock = asyncio.Lock()
        return self._reconnect_lock

    async def connect(self) -> None:
        """Establish connection to Redis with exponential backoff between attempts."""
        for attempt in range(settings.redis_reconnect_max_retries):
            try:
                self.client = redis.from_url(
                    self.url,
                    encoding="utf-8",
                    decode_responses=True,
                    max_connections=10,
                )
                await asyncio.wait_for(self.client.ping(), timeout=5.0)
                self.connected = True
                self._last_health_check = datetime.now(timezone.utc)
                logger.info("✅ Connected to Redis successfully")
                return
            except (RedisError, OSError, asyncio.TimeoutError) as e:
                if attempt < settings.redis_reconnect_max_retries - 1:
                    delay = min(
                        settings.redis_reconnect_initial_delay * (2**attempt),
                        settings.redis_reconnect_max_delay,
                    )
                    logger.warning(
                        f"Failed to connect to Redis (attempt {attempt + 1}/"
                        f"{settings.redis_reconnect_max_retries}): {e}. "
                        f"Retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"Failed to connect to Redis after "
                        f"{settings.redis_reconnect_max_retries} attempts: {e}"
                    )
                    self.connected = False

    async def disconnect(self) -> None:
        """Close connection to Redis."""
        if self.client:
            try:
                await self.client.aclose()
            except RedisError as e:
                logger.warning(f"Error closing Redis client: {e}")
            finally:
                self.connected = False
                logger.info("Disconnected from Redis")

    async def ensure_connected(self) -> bool:
        """
        Ensure Redis connection is healthy, reconnect if needed.

        Returns:
            True if connected, False otherwise
        """
        if self.connected and self.client:
            if self._last_health_check:
                seconds_since_check = (
                    datetime.now(timezone.utc) - self._last_health_check
                ).total_seconds()
                # Only check if it's been more than 10 seconds since last check
                if seconds_since_check < 10:
                    return True

            try:
                await asyncio.wait_for(self.client.ping(), timeout=5.0)
                self._last_health_check = datetime.now(timezone.utc)
                return True
            except (RedisError, asyncio.TimeoutError) as e:
                logger.warning(f"⚠️ Redis connection lost: {e}")
                self.connected = False

        # Reconnect with lock to prevent concurrent attempts
        async with self.reconnect_lock:
            if self.connected and self.client:
                return True

            logger.info("🔄 Attempting Redis reconnection...")
            await self.connect()

        return self.connected

    async def health_check(self) -> Dict[str, Any]:
        """
        Report connection health for the gateway health endpoint.

        Returns:
            Dict with 'connected' and, on failure, 'error'
        """
        if not self.client:
            return {"connected": False, "error": "Redis client not initialized"}

        try:
            await asyncio.wait_for(self.client.ping(), timeout=5.0)
            self._last_health_check = datetime.now(timezone.utc)
            return {"connected": True, "url": self.url}
        except (RedisError, asyncio.TimeoutError) as e:
            return {"connected": False, "error": str(e)}
