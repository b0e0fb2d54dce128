"""Detection of anti-automation obstructions.

Signatures are scanned in a fixed order (CAPTCHA containers first, then
challenge pages, then rate-limit banners). A lookup error on one signature
is logged and the scan moves on to the next one.
"""

import asyncio
import random
from enum import Enum
from typing import Awaitable, Callable

from pydantic import BaseModel, ConfigDict

from config.settings import GlobalConfig
from talenttrace.driver import AutomationDriver
from talenttrace.exceptions import DriverError
from talenttrace.locators import CssSelector, LocationStrategy, XPath
from talenttrace.logger import get_logger

log = get_logger(__name__)


class ObstructionKind(str, Enum):
    CAPTCHA = "captcha"
    CHALLENGE = "challenge"
    RATE_LIMIT = "rate_limit"


class ObstructionSignature(BaseModel):
    """One marker of an anti-automation obstruction."""

    model_config = ConfigDict(frozen=True)

    kind: ObstructionKind
    strategy: LocationStrategy


DEFAULT_SIGNATURES: tuple[ObstructionSignature, ...] = (
    ObstructionSignature(kind=ObstructionKind.CAPTCHA, strategy=CssSelector("iframe[src*='recaptcha']")),
    ObstructionSignature(kind=ObstructionKind.CAPTCHA, strategy=CssSelector("div[class*='captcha']")),
    ObstructionSignature(kind=ObstructionKind.CAPTCHA, strategy=CssSelector("div[id*='captcha']")),
    ObstructionSignature(kind=ObstructionKind.CHALLENGE, strategy=CssSelector("div[class*='challenge']")),
    ObstructionSignature(kind=ObstructionKind.CHALLENGE, strategy=CssSelector(".challenge-page")),
    ObstructionSignature(kind=ObstructionKind.CHALLENGE, strategy=CssSelector("[data-test='challenge']")),
    ObstructionSignature(kind=ObstructionKind.RATE_LIMIT, strategy=CssSelector("[data-test='rate-limit']")),
    ObstructionSignature(kind=ObstructionKind.RATE_LIMIT, strategy=CssSelector(".rate-limit")),
    ObstructionSignature(
        kind=ObstructionKind.RATE_LIMIT,
        strategy=XPath("//div[contains(text(), 'too many requests') or contains(text(), 'Too many requests')]"),
    ),
    ObstructionSignature(kind=ObstructionKind.RATE_LIMIT, strategy=XPath("//div[contains(text(), 'Please wait')]")),
)


class DefenseDetector:
    """Scans the current page for CAPTCHA, challenge and rate-limit markers.

    Attributes:
        signatures: Ordered signatures checked by detect_obstruction().
        last_match: Signature matched by the most recent positive scan.
    """

    def __init__(
        self,
        driver: AutomationDriver,
        config: GlobalConfig,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        signatures: tuple[ObstructionSignature, ...] = DEFAULT_SIGNATURES,
    ) -> None:
        self.driver = driver
        self.config = config
        self.rng = rng or random.Random(config.random_seed)
        self.signatures = signatures
        self.last_match: ObstructionSignature | None = None
        self._sleep = sleep

    async def detect_obstruction(self) -> bool:
        """Return True on the first signature present on the page."""
        self.last_match = None

        for signature in self.signatures:
            try:
                elements = await self.driver.find_elements(signature.strategy)
            except DriverError as exc:
                log.debug(
                    "Obstruction signature lookup failed",
                    strategy=str(signature.strategy),
                    error=str(exc),
                )
                continue

            if elements:
                self.last_match = signature
                log.warning(
                    "Obstruction detected",
                    kind=signature.kind.value,
                    strategy=str(signature.strategy),
                )
                return True

        return False

    async def backoff(self) -> float:
        """Block for a randomized minutes-scale cool-down.

        Does not retry anything; the caller decides what happens next.

        Returns:
            Seconds slept.
        """
        low = self.config.backoff_min_seconds
        high = self.config.backoff_max_seconds
        delay = low if high <= low else self.rng.uniform(low, high)

        log.warning("Rate limit backoff", seconds=round(delay, 1))
        await self._sleep(delay)
        return delay

    async def guard(self) -> ObstructionSignature | None:
        """Detect an obstruction and back off if it is a rate limit.

        Returns:
            The matched signature, or None when the page is clear.
        """
        if not await self.detect_obstruction():
            return None

        match = self.last_match
        if match is not None and match.kind is ObstructionKind.RATE_LIMIT:
            await self.backoff()
        return match
