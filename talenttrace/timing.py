"""Humanized timing and synthetic gestures.

All randomness flows through an injected ``random.Random`` so a session
(or a test) can be seeded and replayed exactly. All waiting flows through
an injected ``sleep`` coroutine.

Degenerate inputs never raise here: a zero-width delay range yields the
lower bound, a failed height or viewport probe falls back to fixed
dimensions. Only failures of the underlying driver action itself
(scrolling, typing) propagate to the caller.
"""

import asyncio
import math
import random
from typing import Any, Awaitable, Callable

from config.settings import MAX_DELAY_SECONDS, GlobalConfig
from talenttrace.driver import AutomationDriver, DriverElement
from talenttrace.logger import get_logger

log = get_logger(__name__)

SHORT_DELAY_RANGE = (0.5, 1.5)
KEYSTROKE_DELAY_RANGE = (0.02, 0.1)

FALLBACK_PAGE_HEIGHT = 3000
SCROLL_STEP = 300
SCROLL_JITTER = 100
MIN_SCROLL_STEP = 100
SCROLL_PAUSE_JITTER = 0.5
READING_PAUSE_CHANCE = 0.2
READING_PAUSE_RANGE = (1.0, 3.0)

FALLBACK_VIEWPORT = (1920, 1080)
MOUSE_MOVES = 3
MOUSE_PAUSE_RANGE = (0.1, 0.6)

_SCROLL_HEIGHT_SCRIPT = "return document.body.scrollHeight;"
_SCROLL_BY_SCRIPT = "window.scrollBy(0, arguments[0]);"
_SCROLL_TOP_SCRIPT = "window.scrollTo(0, 0);"
_VIEWPORT_SCRIPT = "return [window.innerWidth, window.innerHeight];"
_MOUSE_MOVE_SCRIPT = """
var event = new MouseEvent('mousemove', {
    clientX: arguments[0],
    clientY: arguments[1],
    bubbles: true
});
document.dispatchEvent(event);
"""
_USER_AGENT_SCRIPT = """
var userAgent = arguments[0];
Object.defineProperty(navigator, 'userAgent', {
    get: function() { return userAgent; },
    configurable: true
});
"""


def _clamp(seconds: float) -> float:
    return min(max(seconds, 0.0), MAX_DELAY_SECONDS)


def _as_int(value: Any) -> int | None:
    """Accept only genuine, finite numbers from a browser probe."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return int(value)


class TimingEngine:
    """Produces humanized delays and gestures for one driver session.

    Attributes:
        driver: Automation driver the gestures are dispatched to.
        config: GlobalConfig with delay bounds and the user-agent pool.
        rng: Random generator owned by the session.

    Example:
        timing = TimingEngine(driver, config, random.Random(42))
        await timing.random_delay()
        await timing.humanized_scroll()
    """

    def __init__(
        self,
        driver: AutomationDriver,
        config: GlobalConfig,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.driver = driver
        self.config = config
        self.rng = rng or random.Random(config.random_seed)
        self._sleep = sleep

    async def pause(self, seconds: float) -> float:
        """Sleep for ``seconds`` clamped to [0, MAX_DELAY_SECONDS]."""
        seconds = _clamp(seconds)
        await self._sleep(seconds)
        return seconds

    def sample_random_delay(self) -> float:
        """Sample a delay in [min_delay_sec, max_delay_sec).

        Returns min_delay_sec exactly when the range is empty.
        """
        low = self.config.min_delay_sec
        high = self.config.max_delay_sec
        if high <= low:
            return low
        delay = low + self.rng.random() * (high - low)
        # Float rounding can land exactly on the open upper bound.
        return delay if delay < high else low

    async def random_delay(self) -> float:
        """Sleep a randomized inter-phase delay and return its length."""
        return await self.pause(self.sample_random_delay())

    async def short_delay(self) -> float:
        """Sleep 0.5-1.5 s, used between micro-actions."""
        low, high = SHORT_DELAY_RANGE
        return await self.pause(self.rng.uniform(low, high))

    async def wait_with_randomization(self, base: float) -> float:
        """Sleep ``base`` seconds with +/-20% jitter."""
        variance = base * 0.2
        delay = base + self.rng.uniform(-variance, variance)
        if delay < 0:
            delay = base
        return await self.pause(delay)

    async def _probe_page_height(
        self, probe: Callable[[], Awaitable[Any]] | None
    ) -> int:
        try:
            raw = await (probe() if probe is not None else self.driver.execute_script(_SCROLL_HEIGHT_SCRIPT))
        except Exception as exc:
            log.warning("Page height probe failed, using fallback", error=str(exc))
            return FALLBACK_PAGE_HEIGHT

        height = _as_int(raw)
        if height is None or height <= 0:
            log.warning(
                "Implausible page height, using fallback",
                value=repr(raw),
                fallback=FALLBACK_PAGE_HEIGHT,
            )
            return FALLBACK_PAGE_HEIGHT
        return height

    async def humanized_scroll(
        self, page_height_probe: Callable[[], Awaitable[Any]] | None = None
    ) -> int:
        """Scroll the page to the bottom in jittered steps, then back to top.

        Args:
            page_height_probe: Optional coroutine function returning the
                page height; defaults to reading document.body.scrollHeight.

        Returns:
            Total pixels scrolled.

        Raises:
            DriverError: If a scroll script itself fails.
        """
        height = await self._probe_page_height(page_height_probe)
        position = 0
        steps = 0

        while position < height:
            step = SCROLL_STEP + self.rng.randint(-SCROLL_JITTER, SCROLL_JITTER - 1)
            step = max(step, MIN_SCROLL_STEP)

            await self.driver.execute_script(_SCROLL_BY_SCRIPT, step)
            position += step
            steps += 1

            await self.pause(
                self.config.scroll_delay_sec + self.rng.uniform(0, SCROLL_PAUSE_JITTER)
            )

            # Occasional reading pause
            if self.rng.random() < READING_PAUSE_CHANCE:
                await self.pause(self.rng.uniform(*READING_PAUSE_RANGE))

        await self.driver.execute_script(_SCROLL_TOP_SCRIPT)

        log.debug("Humanized scroll complete", page_height=height, steps=steps)
        return position

    async def humanized_type(self, element: DriverElement, text: str) -> None:
        """Clear ``element`` and type ``text`` one character at a time.

        Raises:
            DriverError: On the first failed clear or keystroke.
        """
        await element.clear()
        await self.short_delay()

        for char in text:
            await element.send_keys(char)
            await self.pause(self.rng.uniform(*KEYSTROKE_DELAY_RANGE))

        await self.short_delay()

    async def _probe_viewport(self) -> tuple[int, int]:
        try:
            raw = await self.driver.execute_script(_VIEWPORT_SCRIPT)
        except Exception as exc:
            log.debug("Viewport probe failed, using fallback", error=str(exc))
            return FALLBACK_VIEWPORT

        if not isinstance(raw, (list, tuple)) or len(raw) != 2:
            return FALLBACK_VIEWPORT
        width, height = _as_int(raw[0]), _as_int(raw[1])
        if not width or not height or width <= 0 or height <= 0:
            return FALLBACK_VIEWPORT
        return width, height

    async def simulate_mouse_movement(self) -> int:
        """Dispatch a few synthetic mousemove events at random coordinates.

        Never raises; dispatch failures are logged at debug level.

        Returns:
            Number of events dispatched successfully.
        """
        width, height = await self._probe_viewport()
        dispatched = 0

        for _ in range(MOUSE_MOVES):
            x = self.rng.randrange(width)
            y = self.rng.randrange(height)
            try:
                await self.driver.execute_script(_MOUSE_MOVE_SCRIPT, x, y)
                dispatched += 1
            except Exception as exc:
                log.debug("Mouse move dispatch failed", x=x, y=y, error=str(exc))
            await self.pause(self.rng.uniform(*MOUSE_PAUSE_RANGE))

        return dispatched

    async def click_with_delay(self, element: DriverElement) -> None:
        """Move the mouse, pause, click, pause."""
        await self.simulate_mouse_movement()
        await self.short_delay()
        await element.click()
        await self.short_delay()

    async def rotate_user_agent(self) -> str:
        """Apply a randomly chosen user agent through a page-level override.

        Returns:
            The user-agent string that was applied.

        Raises:
            DriverError: If the override script fails; callers log a warning.
        """
        user_agent = self.rng.choice(self.config.user_agents)
        await self.driver.execute_script(_USER_AGENT_SCRIPT, user_agent)
        log.debug("User-agent rotated", current=user_agent[:50] + "...")
        return user_agent
