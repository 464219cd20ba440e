"""Tests for the bounded retry helper."""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from anki_bridge.common.reliability import retry_async
from anki_bridge.errors import ConfigurationError


class FlakyOperation:
    """Fails ``failures`` times, then returns ``value``."""

    def __init__(self, failures: int, value: str = "done") -> None:
        self.failures = failures
        self.value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return self.value


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_succeeds_after_two_failures(self) -> None:
        operation = FlakyOperation(failures=2)
        sleep = RecordingSleep()
        result = await retry_async(operation, max_attempts=5, delay_ms=500, sleep=sleep)
        assert result == "done"
        assert operation.calls == 3
        assert sleep.delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_reraises_last_failure_when_exhausted(self) -> None:
        operation = FlakyOperation(failures=10)
        sleep = RecordingSleep()
        with pytest.raises(RuntimeError, match="failure 3"):
            await retry_async(operation, max_attempts=3, delay_ms=200, sleep=sleep)
        assert operation.calls == 3
        assert sleep.delays == [0.2, 0.2]

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self) -> None:
        operation = FlakyOperation(failures=0)
        sleep = RecordingSleep()
        assert await retry_async(operation, max_attempts=5, delay_ms=500, sleep=sleep) == "done"
        assert operation.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_attempts", [0, -1])
    async def test_rejects_non_positive_attempts(self, max_attempts: int) -> None:
        operation = FlakyOperation(failures=0)
        with pytest.raises(ConfigurationError, match="max_attempts"):
            await retry_async(operation, max_attempts=max_attempts, delay_ms=500)
        assert operation.calls == 0

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self) -> None:
        operation = FlakyOperation(failures=1)
        sleep = RecordingSleep()
        with pytest.raises(RuntimeError, match="failure 1"):
            await retry_async(operation, max_attempts=1, delay_ms=500, sleep=sleep)
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_wait_yields_to_other_tasks(self) -> None:
        events: List[str] = []
        operation = FlakyOperation(failures=1)

        async def other() -> None:
            events.append("other ran")

        async def retried() -> str:
            result = await retry_async(operation, max_attempts=2, delay_ms=10)
            events.append("retry finished")
            return result

        await asyncio.gather(retried(), other())
        assert events == ["other ran", "retry finished"]
