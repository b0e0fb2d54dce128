"""Pytest configuration and shared fixtures for the TalentTrace test suite.

This module provides hermetic test infrastructure with the following guarantees:
- No browser and no network (an in-memory driver stands in for Playwright)
- Deterministic execution (seeded randomness, fake monotonic clock)
- Isolated state (no cross-test contamination of the config singleton)

Design Rationale:
    The scraping core only talks to the AutomationDriver and DriverElement
    protocols, so FakeDriver/FakeElement exercise the real session, timing,
    defense and extraction code paths. FakeClock advances time only when
    something sleeps, which makes bounded waits finish instantly.
"""

import random
from pathlib import Path
from typing import Any

import pytest

from config.settings import GlobalConfig
from talenttrace.exceptions import DriverError, ElementNotFoundError, NavigationError
from talenttrace.locators import LocationStrategy


class FakeClock:
    """Monotonic clock advanced by its own ``sleep``.

    Attributes:
        now_value: Current time in seconds.
        sleeps: Every duration passed to sleep(), in call order.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now_value = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.now_value

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now_value += seconds


class FakeElement:
    """In-memory DriverElement.

    Attributes:
        children: Strategy -> elements found inside this element.
        typed: Keys received through send_keys, in order.
        clears: Number of clear() calls.
        clicks: Number of click() calls.
        fail_on: Operation names that raise DriverError.
    """

    def __init__(
        self,
        text: str = "",
        children: dict[LocationStrategy, list["FakeElement"]] | None = None,
        fail_on: set[str] | None = None,
    ) -> None:
        self._text = text
        self.children = children or {}
        self.fail_on = fail_on or set()
        self.typed: list[str] = []
        self.clears = 0
        self.clicks = 0

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise DriverError(operation, "injected failure")

    @property
    def value(self) -> str:
        return "".join(self.typed)

    async def text(self) -> str:
        self._maybe_fail("text")
        return self._text

    async def send_keys(self, text: str) -> None:
        self._maybe_fail("send_keys")
        self.typed.append(text)

    async def clear(self) -> None:
        self._maybe_fail("clear")
        self.clears += 1
        self.typed.clear()

    async def click(self) -> None:
        self._maybe_fail("click")
        self.clicks += 1

    async def find_element(self, strategy: LocationStrategy) -> "FakeElement":
        matches = self.children.get(strategy, [])
        if not matches:
            raise ElementNotFoundError(str(strategy))
        return matches[0]

    async def find_elements(self, strategy: LocationStrategy) -> list["FakeElement"]:
        return list(self.children.get(strategy, []))


class FakeDriver:
    """In-memory AutomationDriver.

    Attributes:
        elements: Strategy -> elements present on the current page.
        script_results: Substring of a script -> value it returns.
        failing_strategies: Strategies whose lookup raises DriverError.
        failing_scripts: Substrings of scripts that raise DriverError.
        navigation_failures: URLs whose get() raises NavigationError.
        visited: URLs passed to get(), in order.
        lookups: Strategies passed to find_element(s), in order.
        scripts: (script, args) pairs passed to execute_script.
    """

    def __init__(
        self,
        elements: dict[LocationStrategy, list[FakeElement]] | None = None,
        script_results: dict[str, Any] | None = None,
    ) -> None:
        self.elements = elements or {}
        self.script_results = {
            "scrollHeight": 900,
            "innerWidth": [800, 600],
            **(script_results or {}),
        }
        self.failing_strategies: set[LocationStrategy] = set()
        self.failing_scripts: set[str] = set()
        self.navigation_failures: set[str] = set()
        self.visited: list[str] = []
        self.lookups: list[LocationStrategy] = []
        self.scripts: list[tuple[str, tuple[Any, ...]]] = []
        self.quit_called = False

    def add(self, strategy: LocationStrategy, *elements: FakeElement) -> None:
        self.elements.setdefault(strategy, []).extend(elements)

    async def get(self, url: str) -> None:
        if url in self.navigation_failures:
            raise NavigationError(url=url, reason="HTTP 500", status_code=500)
        self.visited.append(url)

    def _lookup(self, strategy: LocationStrategy) -> list[FakeElement]:
        self.lookups.append(strategy)
        if strategy in self.failing_strategies:
            raise DriverError("find_elements", "injected failure", str(strategy))
        return list(self.elements.get(strategy, []))

    async def find_element(self, strategy: LocationStrategy) -> FakeElement:
        matches = self._lookup(strategy)
        if not matches:
            raise ElementNotFoundError(str(strategy))
        return matches[0]

    async def find_elements(self, strategy: LocationStrategy) -> list[FakeElement]:
        return self._lookup(strategy)

    async def execute_script(self, script: str, *args: Any) -> Any:
        self.scripts.append((script, args))
        for fragment in self.failing_scripts:
            if fragment in script:
                raise DriverError("execute_script", "injected failure")
        for fragment, result in self.script_results.items():
            if fragment in script:
                return result
        return None

    def scripts_matching(self, fragment: str) -> list[tuple[Any, ...]]:
        return [args for script, args in self.scripts if fragment in script]

    async def quit(self) -> None:
        self.quit_called = True


class FakeLauncher:
    """DriverLauncher handing out a prepared FakeDriver."""

    def __init__(self, driver: FakeDriver, error: Exception | None = None) -> None:
        self.driver = driver
        self.error = error
        self.started = 0
        self.stopped = 0

    async def start(self) -> FakeDriver:
        self.started += 1
        if self.error is not None:
            raise self.error
        return self.driver

    async def stop(self) -> None:
        self.stopped += 1


@pytest.fixture
def mock_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GlobalConfig:
    """Provide isolated GlobalConfig with safe test defaults.

    Overrides the lru_cache singleton to prevent state leakage between tests.
    Uses tmp_path for all file operations to avoid polluting the filesystem.

    Example:
        def test_something(mock_config: GlobalConfig) -> None:
            assert mock_config.random_seed == 1234
    """
    from config.settings import get_config

    get_config.cache_clear()

    log_dir = tmp_path / "logs"
    output_dir = tmp_path / "output"
    log_dir.mkdir()
    output_dir.mkdir()

    test_env = {
        "APP_NAME": "TalentTrace-Test",
        "ENVIRONMENT": "test",
        "DEBUG": "false",
        "HEADLESS": "true",
        "LOG_LEVEL": "DEBUG",
        "LOG_DIR": str(log_dir),
        "LOG_ROTATION": "1 day",
        "LOG_RETENTION": "1 day",
        "OUTPUT_DIR": str(output_dir),
        "LINKEDIN_EMAIL": "recruiter@example.com",
        "LINKEDIN_PASSWORD": "hunter2",
        "MIN_DELAY_SEC": "2.0",
        "MAX_DELAY_SEC": "5.0",
        "PAGE_LOAD_DELAY_SEC": "3.0",
        "ELEMENT_SEARCH_DELAY_SEC": "10.0",
        "LOGIN_TIMEOUT_SEC": "10.0",
        "POLL_INTERVAL_SEC": "0.5",
        "BACKOFF_MIN_SECONDS": "300",
        "BACKOFF_MAX_SECONDS": "600",
        "RANDOM_SEED": "1234",
    }

    for key, value in test_env.items():
        monkeypatch.setenv(key, value)

    config = get_config()

    yield config

    get_config.cache_clear()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


def pytest_configure(config: Any) -> None:
    """Configure pytest with custom markers.

    Args:
        config: Pytest config object.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring full stack",
    )
