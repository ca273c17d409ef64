"""Unit tests for Redis client singleton."""

from unittest.mock import AsyncMock, MagicMock, patch

from shared.redis_client import close_redis_client, get_redis_client


class TestRedisClient:
    """Tests for Redis client singleton."""

    def setup_method(self):
        get_redis_client.cache_clear()

    def teardown_method(self):
        get_redis_client.cache_clear()

    def test_get_redis_client_is_singleton(self):
        """Test that get_redis_client returns the same instance (cached)."""
        with patch("shared.redis_client.redis.from_url") as mock_from_url:
            mock_from_url.return_value = MagicMock()

            result1 = get_redis_client()
            result2 = get_redis_client()

            assert result1 is result2
            assert mock_from_url.call_count == 1

    def test_decodes_responses(self):
        """Pending context values are read back as str, not bytes."""
        with patch("shared.redis_client.redis.from_url") as mock_from_url:
            get_redis_client()

            assert mock_from_url.call_args.kwargs["decode_responses"] is True

    async def test_close_swallows_errors(self):
        """Shutdown never fails because Redis is already gone."""
        mock_client = MagicMock()
        mock_client.close = AsyncMock(side_effect=ConnectionError("gone"))

        with patch("shared.redis_client.redis.from_url", return_value=mock_client):
            await close_redis_client()

        mock_client.close.assert_awaited_once()
