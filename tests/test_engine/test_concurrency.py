"""
Bounded fan-out tests.
"""

import asyncio

import pytest

from memoclaw_mcp.engine.concurrency import error_message, values, with_concurrency


class TestWithConcurrency:

    @pytest.mark.asyncio
    async def test_results_keep_input_order(self):
        async def job(i):
            await asyncio.sleep(0.001 * (5 - i))
            return i

        results = await with_concurrency([lambda i=i: job(i) for i in range(5)], limit=3)

        assert [r.value for r in results] == [0, 1, 2, 3, 4]
        assert all(r.ok for r in results)

    @pytest.mark.asyncio
    async def test_limit_is_respected(self):
        running = 0
        peak = 0

        async def job():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.001)
            running -= 1

        await with_concurrency([job for _ in range(25)], limit=4)

        assert peak == 4

    @pytest.mark.asyncio
    async def test_failures_are_collected(self):
        async def ok():
            return "fine"

        async def boom():
            raise RuntimeError("boom")

        results = await with_concurrency([ok, boom, ok])

        assert [r.ok for r in results] == [True, False, True]
        assert error_message(results[1].error) == "boom"
        assert values(results) == ["fine", "fine"]

    @pytest.mark.asyncio
    async def test_empty_task_list(self):
        assert await with_concurrency([]) == []

    @pytest.mark.asyncio
    async def test_invalid_limit(self):
        with pytest.raises(ValueError):
            await with_concurrency([], limit=0)

    def test_error_message_defaults(self):
        assert error_message(RuntimeError()) == "unknown error"
        assert error_message(None) == ""
