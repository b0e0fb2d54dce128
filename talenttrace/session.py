"""Authenticated browser session and the login state machine.

States:
    UNAUTHENTICATED -> AUTH_IN_PROGRESS -> AUTHENTICATED
                                        -> OBSTRUCTED
                                        -> FAILED

Every transition is logged. Credentials never reach a log record: the
password is held as a SecretStr and only unwrapped at the moment it is
typed into the form; the logger masks it should it ever be passed along.

Design Rationale:
    The login wait polls for an obstruction before it looks for the
    authenticated marker on each attempt, so a CAPTCHA page that also
    carries profile links is reported as OBSTRUCTED. A failed login is
    never retried here; retry policy belongs to the caller.
"""

import asyncio
import random
import time
import uuid
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Protocol

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from config.settings import GlobalConfig, get_config
from talenttrace.browser import BrowserManager
from talenttrace.cascades import (
    AUTHENTICATED_MARKER,
    LOGIN_EMAIL_FIELD,
    LOGIN_PASSWORD_FIELD,
    LOGIN_SUBMIT,
)
from talenttrace.defense import DefenseDetector, ObstructionKind, ObstructionSignature
from talenttrace.driver import AutomationDriver
from talenttrace.exceptions import (
    BrowserInitializationError,
    DriverError,
    LoginError,
    NavigationError,
    ObstructionError,
    SessionStateError,
    WaitCancelledError,
    WaitTimeoutError,
)
from talenttrace.locators import LocationStrategy
from talenttrace.logger import get_logger
from talenttrace.timing import TimingEngine
from talenttrace.waits import CancellationToken, Clock, Waiter


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTH_IN_PROGRESS = "auth_in_progress"
    AUTHENTICATED = "authenticated"
    OBSTRUCTED = "obstructed"
    FAILED = "failed"


class Credentials(BaseModel):
    """Login credentials. The password is masked in repr and logs."""

    model_config = ConfigDict(frozen=True)

    email: str = Field(..., min_length=1)
    password: SecretStr

    @classmethod
    def from_config(cls, config: GlobalConfig) -> "Credentials":
        return cls(email=config.linkedin_email, password=SecretStr(config.linkedin_password))


class DriverLauncher(Protocol):
    """Starts and stops the browser behind a session."""

    async def start(self) -> AutomationDriver: ...

    async def stop(self) -> None: ...


class SessionController:
    """Owns one browser session from launch to teardown.

    Attributes:
        config: GlobalConfig instance.
        state: Current login state.
        driver: Active driver after open(), None otherwise.
        timing: TimingEngine bound to the driver after open().
        defense: DefenseDetector bound to the driver after open().
        waiter: Waiter sharing the session's cancellation token.
        session_id: Short random id tagged onto every log record as ``session``.
        log: Logger bound to this session.

    Example:
        async with SessionController.create(config) as session:
            await session.login()
            profile = await ProfileScraper(session).scrape_profile(url)
    """

    def __init__(
        self,
        config: GlobalConfig | None = None,
        launcher: DriverLauncher | None = None,
        rng: random.Random | None = None,
        clock: Clock = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        token: CancellationToken | None = None,
    ) -> None:
        self.config = config or get_config()
        self.launcher = launcher or BrowserManager(self.config)
        self.rng = rng or random.Random(self.config.random_seed)
        self.token = token or CancellationToken()
        self.waiter = Waiter(
            clock=clock,
            sleep=sleep,
            poll_interval=self.config.poll_interval_sec,
            token=self.token,
        )
        self.session_id = uuid.uuid4().hex[:8]
        self.log = get_logger(__name__, session=self.session_id)
        self.state = SessionState.UNAUTHENTICATED
        self.driver: AutomationDriver | None = None
        self.timing: TimingEngine | None = None
        self.defense: DefenseDetector | None = None
        self._sleep = sleep

    @classmethod
    @asynccontextmanager
    async def create(
        cls, config: GlobalConfig | None = None, **kwargs
    ) -> AsyncIterator["SessionController"]:
        """Open a session and guarantee it is closed on every exit path."""
        session = cls(config, **kwargs)
        try:
            await session.open()
            yield session
        finally:
            await session.close()

    def transition(self, state: SessionState, **context) -> None:
        previous = self.state
        self.state = state
        self.log.info(
            "Session state changed",
            previous=previous.value,
            current=state.value,
            **context,
        )

    def require(self, state: SessionState, operation: str) -> None:
        """Raise SessionStateError unless the session is in ``state``."""
        if self.state is not state:
            raise SessionStateError(operation, self.state.value, state.value)

    @property
    def is_open(self) -> bool:
        return self.driver is not None

    async def open(self) -> AutomationDriver:
        """Launch the browser and bind timing and defense helpers to it.

        Raises:
            BrowserInitializationError: If the browser cannot be started.
        """
        if self.driver is not None:
            return self.driver

        try:
            driver = await self.launcher.start()
        except BrowserInitializationError:
            raise
        except Exception as exc:
            raise BrowserInitializationError(reason=str(exc)) from exc

        self.driver = driver
        self.timing = TimingEngine(driver, self.config, self.rng, self._sleep)
        self.defense = DefenseDetector(driver, self.config, self.rng, self._sleep)

        try:
            await self.timing.rotate_user_agent()
        except DriverError as exc:
            self.log.warning("User-agent rotation failed", error=exc.message)

        self.log.info("Session opened")
        return driver

    def ensure_open(self, operation: str) -> tuple[AutomationDriver, TimingEngine, DefenseDetector]:
        if self.driver is None or self.timing is None or self.defense is None:
            raise SessionStateError(operation, "closed", "open")
        return self.driver, self.timing, self.defense

    async def _fill(self, strategy: LocationStrategy, value: str, field: str) -> None:
        driver, timing, _ = self.ensure_open("login")
        try:
            element = await self.waiter.for_element(
                driver, strategy, self.config.element_search_delay_sec
            )
        except DriverError as exc:
            self.transition(SessionState.FAILED, reason=f"{field} field not found")
            raise LoginError(f"{field} field not found", strategy=str(strategy)) from exc

        try:
            await timing.humanized_type(element, value)
        except DriverError as exc:
            self.transition(SessionState.FAILED, reason=f"could not type {field}")
            raise LoginError(f"could not type {field}", strategy=str(strategy)) from exc

    async def _submit(self) -> None:
        driver, timing, _ = self.ensure_open("login")
        try:
            button = await self.waiter.for_element(
                driver, LOGIN_SUBMIT, self.config.element_search_delay_sec
            )
            await timing.click_with_delay(button)
        except DriverError as exc:
            self.transition(SessionState.FAILED, reason="submit failed")
            raise LoginError("submit control unavailable", strategy=str(LOGIN_SUBMIT)) from exc

    async def _await_outcome(self) -> ObstructionSignature | None:
        """Poll until an obstruction or the authenticated marker shows up.

        Returns:
            The obstruction signature, or None once authenticated.
        """
        driver, _, defense = self.ensure_open("login")

        async def probe() -> tuple[ObstructionSignature | None] | None:
            if await defense.detect_obstruction():
                return (defense.last_match,)
            try:
                authenticated = await driver.find_elements(AUTHENTICATED_MARKER)
            except DriverError as exc:
                self.log.debug("Authenticated marker lookup failed", error=exc.message)
                return None
            return (None,) if authenticated else None

        (signature,) = await self.waiter.until(
            probe, self.config.login_timeout_sec, "login outcome"
        )
        return signature

    async def login(self, credentials: Credentials | None = None) -> SessionState:
        """Run the login form flow once.

        Args:
            credentials: Defaults to the configured email and password.

        Returns:
            SessionState.AUTHENTICATED on success.

        Raises:
            LoginError: Missing credentials, missing form field, failed
                navigation or no authenticated marker before the timeout.
            ObstructionError: CAPTCHA, challenge or rate limit detected.
            SessionStateError: If the session is not open or not in
                UNAUTHENTICATED.
        """
        self.ensure_open("login")
        self.require(SessionState.UNAUTHENTICATED, "login")

        if credentials is None:
            if not self.config.linkedin_email or not self.config.linkedin_password:
                raise LoginError("credentials not configured", state=self.state.value)
            credentials = Credentials.from_config(self.config)

        self.transition(
            SessionState.AUTH_IN_PROGRESS, url=self.config.login_url, user=credentials.email
        )

        try:
            await self._authenticate(credentials)
        except WaitCancelledError:
            self.transition(SessionState.FAILED, reason="cancelled")
            raise

        self.transition(SessionState.AUTHENTICATED)
        return self.state

    async def _authenticate(self, credentials: Credentials) -> None:
        driver, timing, defense = self.ensure_open("login")

        try:
            await driver.get(self.config.login_url)
        except NavigationError as exc:
            self.transition(SessionState.FAILED, reason="navigation failed")
            raise LoginError(f"could not open login page: {exc.message}") from exc

        await timing.random_delay()

        await self._fill(LOGIN_EMAIL_FIELD, credentials.email, "email")
        await timing.short_delay()
        await self._fill(LOGIN_PASSWORD_FIELD, credentials.password.get_secret_value(), "password")
        await self._submit()

        await self.wait_for_page_load()

        try:
            signature = await self._await_outcome()
        except WaitTimeoutError as exc:
            self.transition(SessionState.FAILED, reason="login timeout")
            raise LoginError(
                "no authenticated marker before timeout", strategy=str(AUTHENTICATED_MARKER)
            ) from exc

        if signature is not None:
            self.transition(
                SessionState.OBSTRUCTED,
                kind=signature.kind.value,
                strategy=str(signature.strategy),
            )
            if signature.kind is ObstructionKind.RATE_LIMIT:
                await defense.backoff()
            raise ObstructionError(signature.kind.value, str(signature.strategy), self.config.login_url)

    async def wait_for_page_load(self) -> None:
        """Fixed wait after navigation or form submit."""
        await self._sleep(self.config.page_load_delay_sec)

    def cancel(self) -> None:
        """Stop any in-flight wait at its next poll."""
        self.token.cancel()
        self.log.info("Session cancellation requested")

    async def close(self) -> None:
        """Quit the driver and stop the browser. Safe to call twice."""
        if self.driver is not None:
            try:
                await self.driver.quit()
            except Exception as exc:
                self.log.warning("Error quitting driver", error=str(exc))

        self.driver = None
        self.timing = None
        self.defense = None

        try:
            await self.launcher.stop()
        except Exception as exc:
            self.log.warning("Error stopping browser", error=str(exc))

        self.log.debug("Session closed", state=self.state.value)
