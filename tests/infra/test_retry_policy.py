"""
Unit tests for retry policies

Tests backoff delays and retry_async behavior; asyncio.sleep is patched so
the tests never wait.
"""

import pytest
from unittest.mock import AsyncMock, patch

from a2ui_engine.infra.retry_policy import RetryConfig, compute_delay_ms, retry_async


class TestComputeDelay:
    """Test backoff strategies."""

    def test_linear(self):
        config = RetryConfig.from_retries(max_retries=3, retry_delay_ms=1000)
        assert [compute_delay_ms(config, n) for n in (1, 2, 3)] == [1000, 2000, 3000]

    def test_exponential(self):
        config = RetryConfig(min_delay_ms=100, backoff="exponential")
        assert [compute_delay_ms(config, n) for n in (1, 2, 3, 4)] == [100, 200, 400, 800]

    def test_capped(self):
        config = RetryConfig(min_delay_ms=1000, max_delay_ms=1500)
        assert compute_delay_ms(config, 5) == 1500

    def test_jitter_stays_in_range(self):
        config = RetryConfig(min_delay_ms=1000, jitter=0.1)
        for _ in range(20):
            assert 900 <= compute_delay_ms(config, 1) <= 1100

    def test_from_retries(self):
        config = RetryConfig.from_retries(max_retries=3)
        assert config.attempts == 4
        assert config.max_retries == 3
        assert RetryConfig.from_retries(max_retries=-1).attempts == 1


class TestRetryAsync:
    """Test retry_async."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fn = AsyncMock(return_value="ok")
        with patch("a2ui_engine.infra.retry_policy.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await retry_async(fn) == "ok"
        assert fn.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_with_linear_delays(self):
        fn = AsyncMock(side_effect=[ConnectionError("a"), ConnectionError("b"), "ok"])
        retries = []
        config = RetryConfig.from_retries(max_retries=3, retry_delay_ms=1000)

        with patch("a2ui_engine.infra.retry_policy.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await retry_async(fn, config, on_retry=retries.append, label="turn")

        assert result == "ok"
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]
        assert [info["attempt"] for info in retries] == [1, 2]
        assert retries[0]["max_attempts"] == 4
        assert retries[0]["label"] == "turn"
        assert retries[0]["error"] == "a"

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self):
        fn = AsyncMock(side_effect=ConnectionError("down"))
        config = RetryConfig.from_retries(max_retries=2, retry_delay_ms=10)

        with patch("a2ui_engine.infra.retry_policy.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(ConnectionError, match="down"):
                await retry_async(fn, config)
        assert fn.await_count == 3

    @pytest.mark.asyncio
    async def test_should_retry_stops_early(self):
        fn = AsyncMock(side_effect=ValueError("fatal"))

        with patch("a2ui_engine.infra.retry_policy.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(ValueError):
                await retry_async(fn, should_retry=lambda e: not isinstance(e, ValueError))
        assert fn.await_count == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
