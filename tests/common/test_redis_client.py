"""Unit tests for RedisConnection using fakeredis."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from common.redis_client import RedisConnection


@pytest.mark.unit
@pytest.mark.asyncio
class TestRedisConnectionLifecycle:
    """Test RedisConnection connect, disconnect and health checks."""

    async def test_fake_connection_is_connected(self, fake_redis_connection):
        """Test that the fixture connection is usable."""
        assert fake_redis_connection.connected is True
        assert await fake_redis_connection.ensure_connected() is True

    async def test_health_check_when_connected(self, fake_redis_connection):
        """Test health check reports a connected client."""
        health = await fake_redis_connection.health_check()

        assert health["connected"] is True
        assert health["url"] == "redis://fake:6379"

    async def test_health_check_without_client(self):
        """Test health check before connect() was ever called."""
        connection = RedisConnection(url="redis://nowhere:6379")

        health = await connection.health_check()

        assert health["connected"] is False
        assert "error" in health

    async def test_disconnect_clears_connected_flag(self, fake_redis_connection):
        """Test that disconnect closes the client."""
        await fake_redis_connection.disconnect()

        assert fake_redis_connection.connected is False

    async def test_connect_succeeds_on_first_attempt(self, fake_redis_client):
        """Test connect() stores the client when ping succeeds."""
        with patch("common.redis_client.redis.from_url", return_value=fake_redis_client):
            connection = RedisConnection(url="redis://fake:6379")
            await connection.connect()

        assert connection.connected is True
        assert connection.client is fake_redis_client

    async def test_connect_gives_up_after_max_retries(self):
        """Test connect() retries with backoff and leaves the flag unset on failure."""
        failing_client = MagicMock()
        failing_client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))

        with patch(
            "common.redis_client.redis.from_url", return_value=failing_client
        ), patch("common.redis_client.settings") as mock_settings:
            mock_settings.redis_url = "redis://fake:6379"
            mock_settings.redis_reconnect_max_retries = 3
            mock_settings.redis_reconnect_initial_delay = 0.001
            mock_settings.redis_reconnect_max_delay = 0.002

            connection = RedisConnection()
            await connection.connect()

        assert connection.connected is False
        assert failing_client.ping.await_count == 3

    async def test_ensure_connected_reconnects_after_lost_connection(
        self, fake_redis_client
    ):
        """Test that a failed ping triggers a reconnect."""
        broken_client = MagicMock()
        broken_client.ping = AsyncMock(side_effect=RedisConnectionError("gone"))

        connection = RedisConnection(url="redis://fake:6379")
        connection.client = broken_client
        connection.connected = True

        with patch("common.redis_client.redis.from_url", return_value=fake_redis_client):
            assert await connection.ensure_connected() is True

        assert connection.client is fake_redis_client
