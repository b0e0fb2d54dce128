"""Browser orchestration module with stealth capabilities.

BrowserManager launches Chromium through Playwright and hands out a
PlaywrightDriver bound to a single page. It applies:
- anti-automation launch flags
- a fixed viewport from the configured window size
- an init script masking common automation indicators

Design Rationale:
    The manager owns the Playwright process, browser and context; the
    driver owns only its page. SessionController stops both on every exit
    path so no browser process outlives a failed login.
"""

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from config.settings import GlobalConfig, get_config
from talenttrace.driver import PlaywrightDriver
from talenttrace.exceptions import BrowserInitializationError
from talenttrace.logger import get_logger

log = get_logger(__name__)

STEALTH_JS = """
// Override navigator.webdriver
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined,
});

// Override navigator.plugins to appear non-empty
Object.defineProperty(navigator, 'plugins', {
    get: () => [1, 2, 3, 4, 5],
});

// Override navigator.languages
Object.defineProperty(navigator, 'languages', {
    get: () => ['en-US', 'en'],
});

// Override chrome runtime to appear as real Chrome
window.chrome = {
    runtime: {},
};
"""


def parse_window_size(size: str) -> tuple[int, int]:
    """Parse a "<width>,<height>" string.

    Raises:
        ValueError: If the string is not two comma-separated integers.
    """
    parts = size.split(",")
    if len(parts) != 2:
        raise ValueError(f"invalid window size format: {size}")

    try:
        width = int(parts[0].strip())
    except ValueError as exc:
        raise ValueError(f"invalid width: {parts[0]}") from exc
    try:
        height = int(parts[1].strip())
    except ValueError as exc:
        raise ValueError(f"invalid height: {parts[1]}") from exc

    return width, height


class BrowserManager:
    """Manages the Playwright browser lifecycle for one session.

    Attributes:
        config: GlobalConfig instance for runtime configuration.
        driver: PlaywrightDriver created by start(), None before.

    Example:
        manager = BrowserManager(config)
        driver = await manager.start()
        try:
            await driver.get("https://www.linkedin.com/login")
        finally:
            await manager.stop()
    """

    def __init__(self, config: GlobalConfig | None = None) -> None:
        self.config = config or get_config()
        self.driver: PlaywrightDriver | None = None
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    def _launch_args(self) -> list[str]:
        width, height = parse_window_size(self.config.window_size)
        return [
            "--no-sandbox",
            "--disable-blink-features=AutomationControlled",
            "--disable-gpu",
            "--disable-dev-shm-usage",
            "--disable-web-security",
            "--disable-features=VizDisplayCompositor",
            "--disable-infobars",
            f"--window-size={width},{height}",
            f"--remote-debugging-port={self.config.port}",
        ]

    async def start(self) -> PlaywrightDriver:
        """Launch the browser and return a driver for a fresh page.

        Raises:
            BrowserInitializationError: If any launch step fails. Partially
                acquired resources are released before raising.
        """
        log.info("Initializing browser with stealth settings", headless=self.config.headless)

        try:
            self._playwright = await async_playwright().start()

            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=self._launch_args(),
            )

            width, height = parse_window_size(self.config.window_size)
            self._context = await self._browser.new_context(
                viewport={"width": width, "height": height},
                locale="en-US",
                java_script_enabled=True,
            )
            await self._context.add_init_script(STEALTH_JS)

            page = await self._context.new_page()
            timeout_ms = self.config.timeout_seconds * 1000
            page.set_default_timeout(timeout_ms)
            page.set_default_navigation_timeout(timeout_ms)

        except Exception as exc:
            await self.stop()
            raise BrowserInitializationError(reason=str(exc), browser_type="chromium") from exc

        self.driver = PlaywrightDriver(page)
        log.info("Browser initialized successfully", window_size=self.config.window_size)
        return self.driver

    async def stop(self) -> None:
        """Release browser resources in reverse order. Safe to call twice."""
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as exc:
                log.warning("Error closing context", error=str(exc))
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                log.warning("Error closing browser", error=str(exc))
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log.warning("Error stopping playwright", error=str(exc))
            self._playwright = None

        self.driver = None
        log.debug("Browser resources cleaned up")

    @property
    def is_initialized(self) -> bool:
        """Check if browser is fully initialized and ready."""
        return all([
            self._playwright is not None,
            self._browser is not None,
            self._context is not None,
            self.driver is not None,
        ])
