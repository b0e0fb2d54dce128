"""Deadline-based polling waits.

A wait repeatedly runs a probe, sleeps a fixed poll interval between
attempts, and gives up with WaitTimeoutError once the deadline has passed.
A CancellationToken lets an outer controller stop a wait at the next poll
boundary. Clock and sleep are injected so tests never wait in real time.
"""

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

from talenttrace.driver import AutomationDriver, DriverElement
from talenttrace.exceptions import ElementNotFoundError, WaitCancelledError, WaitTimeoutError
from talenttrace.locators import LocationStrategy
from talenttrace.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and its waits."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Waiter:
    """Runs bounded polling loops.

    Attributes:
        poll_interval: Seconds slept between attempts.
        token: Optional cancellation token checked before every attempt.

    Example:
        waiter = Waiter(poll_interval=0.5)
        field = await waiter.for_element(driver, Id("username"), timeout=10)
    """

    def __init__(
        self,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        poll_interval: float = 0.5,
        token: CancellationToken | None = None,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self.poll_interval = poll_interval
        self.token = token

    async def until(
        self,
        probe: Callable[[], Awaitable[T | None]],
        timeout: float,
        target: str,
    ) -> T:
        """Poll ``probe`` until it returns a value other than None.

        The probe always runs at least once, even with a zero timeout.

        Args:
            probe: Coroutine function returning the awaited value or None.
            timeout: Seconds before giving up.
            target: Description used in errors and logs.

        Returns:
            The first non-None probe result.

        Raises:
            WaitTimeoutError: If the deadline passes first.
            WaitCancelledError: If the token is cancelled.
        """
        deadline = self._clock() + timeout

        while True:
            if self.token is not None and self.token.cancelled:
                raise WaitCancelledError(target)

            result = await probe()
            if result is not None:
                return result

            if self._clock() >= deadline:
                break
            await self._sleep(self.poll_interval)

        log.debug("Wait timed out", target=target, timeout=timeout)
        raise WaitTimeoutError(target, timeout)

    async def for_element(
        self,
        driver: AutomationDriver,
        strategy: LocationStrategy,
        timeout: float,
    ) -> DriverElement:
        """Wait until ``strategy`` matches an element and return it."""

        async def probe() -> DriverElement | None:
            try:
                return await driver.find_element(strategy)
            except ElementNotFoundError:
                return None

        return await self.until(probe, timeout, str(strategy))

    async def for_elements(
        self,
        driver: AutomationDriver,
        strategy: LocationStrategy,
        timeout: float,
    ) -> list[DriverElement]:
        """Wait until ``strategy`` matches at least one element."""

        async def probe() -> list[DriverElement] | None:
            elements = await driver.find_elements(strategy)
            return elements or None

        return await self.until(probe, timeout, str(strategy))
