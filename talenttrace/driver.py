"""Automation driver interface and its Playwright implementation.

The scraping core only talks to the two protocols defined here:

- ``AutomationDriver``: navigate, locate, run scripts, tear down
- ``DriverElement``: read text, type, clear, click, locate children

``PlaywrightDriver`` adapts a Playwright ``Page`` to that surface. Tests
substitute an in-memory fake, which is why nothing outside this module
imports Playwright's page or locator types.

Script convention:
    Scripts are function bodies in the Selenium style. Positional
    arguments are read from ``arguments[i]`` and values are returned
    with ``return``:

        await driver.execute_script("window.scrollBy(0, arguments[0]);", 250)
"""

from typing import Any, Protocol, runtime_checkable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from talenttrace.exceptions import DriverError, ElementNotFoundError, NavigationError
from talenttrace.locators import CssSelector, Id, LocationStrategy, XPath
from talenttrace.logger import get_logger

log = get_logger(__name__)


@runtime_checkable
class DriverElement(Protocol):
    """A located element."""

    async def text(self) -> str: ...

    async def send_keys(self, text: str) -> None: ...

    async def clear(self) -> None: ...

    async def click(self) -> None: ...

    async def find_element(self, strategy: LocationStrategy) -> "DriverElement": ...

    async def find_elements(self, strategy: LocationStrategy) -> list["DriverElement"]: ...


@runtime_checkable
class AutomationDriver(Protocol):
    """Capability surface of a controllable browser session.

    ``find_element`` raises ElementNotFoundError when nothing matches;
    ``find_elements`` returns an empty list instead.
    """

    async def get(self, url: str) -> None: ...

    async def find_element(self, strategy: LocationStrategy) -> DriverElement: ...

    async def find_elements(self, strategy: LocationStrategy) -> list[DriverElement]: ...

    async def execute_script(self, script: str, *args: Any) -> Any: ...

    async def quit(self) -> None: ...


def to_playwright_selector(strategy: LocationStrategy) -> str:
    """Map a location strategy onto a Playwright selector engine.

    Args:
        strategy: Id, CssSelector or XPath variant.

    Returns:
        Selector string with an explicit engine prefix.

    Raises:
        TypeError: If the strategy is not a known variant.
    """
    if isinstance(strategy, Id):
        return f"id={strategy.value}"
    if isinstance(strategy, CssSelector):
        return f"css={strategy.value}"
    if isinstance(strategy, XPath):
        return f"xpath={strategy.value}"
    raise TypeError(f"Unsupported location strategy: {type(strategy).__name__}")


async def _locate_first(root: Page | Locator, strategy: LocationStrategy) -> "PlaywrightElement":
    locator = root.locator(to_playwright_selector(strategy))
    try:
        count = await locator.count()
    except PlaywrightError as exc:
        raise DriverError("find_element", str(exc), str(strategy)) from exc

    if count == 0:
        raise ElementNotFoundError(str(strategy))
    return PlaywrightElement(locator.first, str(strategy))


async def _locate_all(root: Page | Locator, strategy: LocationStrategy) -> list["PlaywrightElement"]:
    locator = root.locator(to_playwright_selector(strategy))
    try:
        matches = await locator.all()
    except PlaywrightError as exc:
        raise DriverError("find_elements", str(exc), str(strategy)) from exc
    return [PlaywrightElement(match, str(strategy)) for match in matches]


class PlaywrightElement:
    """DriverElement backed by a Playwright Locator.

    Attributes:
        description: Rendered strategy that produced this element.
    """

    def __init__(self, locator: Locator, description: str) -> None:
        self._locator = locator
        self.description = description

    async def text(self) -> str:
        try:
            return await self._locator.inner_text()
        except PlaywrightError as exc:
            raise DriverError("text", str(exc), self.description) from exc

    async def send_keys(self, text: str) -> None:
        try:
            await self._locator.press_sequentially(text)
        except PlaywrightError as exc:
            raise DriverError("send_keys", str(exc), self.description) from exc

    async def clear(self) -> None:
        try:
            await self._locator.clear()
        except PlaywrightError as exc:
            raise DriverError("clear", str(exc), self.description) from exc

    async def click(self) -> None:
        try:
            await self._locator.click()
        except PlaywrightError as exc:
            raise DriverError("click", str(exc), self.description) from exc

    async def find_element(self, strategy: LocationStrategy) -> "PlaywrightElement":
        return await _locate_first(self._locator, strategy)

    async def find_elements(self, strategy: LocationStrategy) -> list["PlaywrightElement"]:
        return await _locate_all(self._locator, strategy)


class PlaywrightDriver:
    """AutomationDriver backed by a single Playwright Page.

    Attributes:
        page: The wrapped Playwright page.
    """

    def __init__(self, page: Page) -> None:
        self.page = page

    async def get(self, url: str) -> None:
        """Navigate to URL and wait for DOMContentLoaded.

        Raises:
            NavigationError: If navigation fails, times out or returns 4xx/5xx.
        """
        log.debug("Navigating to URL", url=url)

        try:
            response = await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as exc:
            raise NavigationError(url=url, reason=str(exc)) from exc

        if response is not None and response.status >= 400:
            raise NavigationError(
                url=url,
                reason=f"HTTP {response.status}",
                status_code=response.status,
            )

        log.info(
            "Navigation successful",
            url=url,
            status_code=response.status if response is not None else None,
        )

    async def find_element(self, strategy: LocationStrategy) -> PlaywrightElement:
        return await _locate_first(self.page, strategy)

    async def find_elements(self, strategy: LocationStrategy) -> list[PlaywrightElement]:
        return await _locate_all(self.page, strategy)

    async def execute_script(self, script: str, *args: Any) -> Any:
        expression = f"(arguments) => {{\n{script}\n}}"
        try:
            return await self.page.evaluate(expression, list(args))
        except PlaywrightError as exc:
            raise DriverError("execute_script", str(exc)) from exc

    async def quit(self) -> None:
        """Close the page; browser teardown belongs to BrowserManager."""
        if self.page.is_closed():
            return
        try:
            await self.page.close()
        except PlaywrightError as exc:
            raise DriverError("quit", str(exc)) from exc
