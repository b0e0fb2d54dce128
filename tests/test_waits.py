"""Tests for deadline-based polling waits."""

import pytest

from talenttrace.exceptions import ElementNotFoundError, WaitCancelledError, WaitTimeoutError
from talenttrace.locators import Id
from talenttrace.waits import CancellationToken, Waiter
from tests.conftest import FakeClock, FakeDriver, FakeElement

USERNAME = Id("username")


def make_waiter(token: CancellationToken | None = None) -> tuple[Waiter, FakeClock]:
    clock = FakeClock()
    return Waiter(clock=clock.now, sleep=clock.sleep, poll_interval=0.5, token=token), clock


class TestWaiterUntil:
    """Test suite for the core polling loop."""

    @pytest.mark.asyncio
    async def test_returns_first_non_none_result(self) -> None:
        waiter, clock = make_waiter()
        results = iter([None, None, "ready"])

        async def probe() -> str | None:
            return next(results)

        assert await waiter.until(probe, timeout=10, target="thing") == "ready"
        assert clock.sleeps == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_times_out_with_deterministic_message(self) -> None:
        waiter, clock = make_waiter()
        attempts = 0

        async def probe() -> None:
            nonlocal attempts
            attempts += 1
            return None

        with pytest.raises(WaitTimeoutError) as exc_info:
            await waiter.until(probe, timeout=2, target="id=username")

        assert "not found after 2s" in str(exc_info.value)
        assert clock.now() >= 2
        assert attempts == 5

    @pytest.mark.asyncio
    async def test_zero_timeout_still_probes_once(self) -> None:
        waiter, clock = make_waiter()
        calls = []

        async def probe() -> None:
            calls.append(1)
            return None

        with pytest.raises(WaitTimeoutError):
            await waiter.until(probe, timeout=0, target="x")

        assert calls == [1]
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_timeout_is_an_element_not_found(self) -> None:
        """Callers that branch on not-found also catch wait timeouts."""
        waiter, _ = make_waiter()

        async def probe() -> None:
            return None

        with pytest.raises(ElementNotFoundError):
            await waiter.until(probe, timeout=1, target="x")

    @pytest.mark.asyncio
    async def test_cancelled_token_stops_at_next_poll(self) -> None:
        token = CancellationToken()
        waiter, _ = make_waiter(token)
        calls = 0

        async def probe() -> None:
            nonlocal calls
            calls += 1
            token.cancel()
            return None

        with pytest.raises(WaitCancelledError):
            await waiter.until(probe, timeout=10, target="x")

        assert calls == 1


class TestElementWaits:
    """Test suite for element-level helpers."""

    @pytest.mark.asyncio
    async def test_for_element_returns_match(self) -> None:
        driver = FakeDriver()
        field = FakeElement()
        driver.add(USERNAME, field)
        waiter, _ = make_waiter()

        assert await waiter.for_element(driver, USERNAME, timeout=5) is field

    @pytest.mark.asyncio
    async def test_for_element_polls_until_timeout(self) -> None:
        driver = FakeDriver()
        waiter, _ = make_waiter()

        with pytest.raises(WaitTimeoutError):
            await waiter.for_element(driver, USERNAME, timeout=1)

        assert driver.lookups == [USERNAME] * 3

    @pytest.mark.asyncio
    async def test_for_elements_treats_empty_list_as_miss(self) -> None:
        driver = FakeDriver()
        waiter, _ = make_waiter()

        with pytest.raises(WaitTimeoutError):
            await waiter.for_elements(driver, USERNAME, timeout=0.5)
