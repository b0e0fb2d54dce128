"""Tests for the login state machine and session lifecycle.

Validates SessionController including:
- Authenticated, obstructed and failed login outcomes
- Obstruction checked before the authenticated marker on every poll
- Missing credentials and missing form fields
- Teardown on every exit path

Testing Philosophy:
    A FakeDriver presents exactly the markers each scenario needs; the
    FakeClock makes the post-submit race resolve instantly.
"""

import random

import pytest
from pydantic import SecretStr

from config.settings import GlobalConfig
from talenttrace.cascades import (
    AUTHENTICATED_MARKER,
    LOGIN_EMAIL_FIELD,
    LOGIN_PASSWORD_FIELD,
    LOGIN_SUBMIT,
)
from talenttrace.exceptions import (
    BrowserInitializationError,
    LoginError,
    ObstructionError,
    SessionStateError,
    WaitCancelledError,
    WaitTimeoutError,
)
from talenttrace.locators import CssSelector
from talenttrace.session import Credentials, SessionController, SessionState
from tests.conftest import FakeClock, FakeDriver, FakeElement, FakeLauncher


def login_page(driver: FakeDriver | None = None) -> FakeDriver:
    driver = driver or FakeDriver()
    driver.add(LOGIN_EMAIL_FIELD, FakeElement())
    driver.add(LOGIN_PASSWORD_FIELD, FakeElement())
    driver.add(LOGIN_SUBMIT, FakeElement())
    return driver


def make_session(
    config: GlobalConfig, driver: FakeDriver
) -> tuple[SessionController, FakeLauncher, FakeClock]:
    clock = FakeClock()
    launcher = FakeLauncher(driver)
    session = SessionController(
        config,
        launcher=launcher,
        rng=random.Random(5),
        clock=clock.now,
        sleep=clock.sleep,
    )
    return session, launcher, clock


class TestCredentials:
    """Test suite for credential handling."""

    def test_password_is_masked(self) -> None:
        creds = Credentials(email="a@b.c", password=SecretStr("hunter2"))

        assert "hunter2" not in repr(creds)
        assert "hunter2" not in str(creds)

    def test_from_config(self, mock_config: GlobalConfig) -> None:
        creds = Credentials.from_config(mock_config)

        assert creds.email == "recruiter@example.com"
        assert creds.password.get_secret_value() == "hunter2"


class TestLogin:
    """Test suite for login outcomes."""

    @pytest.mark.asyncio
    async def test_authenticated_marker_ends_authenticated(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        driver.add(AUTHENTICATED_MARKER, FakeElement())
        session, _, _ = make_session(mock_config, driver)
        await session.open()

        state = await session.login()

        assert state is SessionState.AUTHENTICATED
        assert session.state is SessionState.AUTHENTICATED
        assert driver.visited == [mock_config.login_url]
        email = driver.elements[LOGIN_EMAIL_FIELD][0]
        password = driver.elements[LOGIN_PASSWORD_FIELD][0]
        assert email.value == "recruiter@example.com"
        assert password.value == "hunter2"
        assert driver.elements[LOGIN_SUBMIT][0].clicks == 1

    @pytest.mark.asyncio
    async def test_obstruction_never_reads_authenticated_marker(
        self, mock_config: GlobalConfig
    ) -> None:
        driver = login_page()
        driver.add(CssSelector("div[class*='captcha']"), FakeElement())
        session, _, clock = make_session(mock_config, driver)
        await session.open()

        with pytest.raises(ObstructionError) as exc_info:
            await session.login()

        assert session.state is SessionState.OBSTRUCTED
        assert exc_info.value.state == "obstructed"
        assert exc_info.value.kind == "captcha"
        assert AUTHENTICATED_MARKER not in driver.lookups
        assert all(pause < mock_config.backoff_min_seconds for pause in clock.sleeps)

    @pytest.mark.asyncio
    async def test_obstruction_wins_over_marker_on_same_page(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        driver.add(CssSelector(".challenge-page"), FakeElement())
        driver.add(AUTHENTICATED_MARKER, FakeElement())
        session, _, _ = make_session(mock_config, driver)
        await session.open()

        with pytest.raises(ObstructionError):
            await session.login()

        assert session.state is SessionState.OBSTRUCTED

    @pytest.mark.asyncio
    async def test_rate_limit_backs_off_before_raising(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        driver.add(CssSelector(".rate-limit"), FakeElement())
        session, _, clock = make_session(mock_config, driver)
        await session.open()

        with pytest.raises(ObstructionError) as exc_info:
            await session.login()

        assert exc_info.value.kind == "rate_limit"
        assert 300 <= clock.sleeps[-1] <= 600

    @pytest.mark.asyncio
    async def test_no_marker_within_timeout_fails(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        session, _, clock = make_session(mock_config, driver)
        await session.open()

        with pytest.raises(LoginError) as exc_info:
            await session.login()

        assert session.state is SessionState.FAILED
        assert isinstance(exc_info.value.__cause__, WaitTimeoutError)
        assert clock.now() >= mock_config.login_timeout_sec

    @pytest.mark.asyncio
    async def test_missing_password_field_fails_with_strategy(self, mock_config: GlobalConfig) -> None:
        driver = FakeDriver()
        driver.add(LOGIN_EMAIL_FIELD, FakeElement())
        session, _, _ = make_session(mock_config, driver)
        await session.open()

        with pytest.raises(LoginError) as exc_info:
            await session.login()

        assert session.state is SessionState.FAILED
        assert exc_info.value.strategy == str(LOGIN_PASSWORD_FIELD)
        assert isinstance(exc_info.value.__cause__, WaitTimeoutError)

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_before_navigation(self) -> None:
        config = GlobalConfig(linkedin_email="", linkedin_password="")
        driver = login_page()
        session, _, _ = make_session(config, driver)
        await session.open()

        with pytest.raises(LoginError):
            await session.login()

        assert driver.visited == []
        assert session.state is SessionState.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_navigation_failure_fails_login(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        driver.navigation_failures.add(mock_config.login_url)
        session, _, _ = make_session(mock_config, driver)
        await session.open()

        with pytest.raises(LoginError):
            await session.login()

        assert session.state is SessionState.FAILED

    @pytest.mark.asyncio
    async def test_login_is_not_retried(self, mock_config: GlobalConfig) -> None:
        """A second login on a failed session is refused."""
        driver = login_page()
        session, _, _ = make_session(mock_config, driver)
        await session.open()
        with pytest.raises(LoginError):
            await session.login()

        with pytest.raises(SessionStateError):
            await session.login()

        assert driver.visited == [mock_config.login_url]

    @pytest.mark.asyncio
    async def test_login_requires_open_session(self, mock_config: GlobalConfig) -> None:
        session, _, _ = make_session(mock_config, login_page())

        with pytest.raises(SessionStateError):
            await session.login()


class TestLifecycle:
    """Test suite for open/close and the context manager."""

    @pytest.mark.asyncio
    async def test_create_closes_on_success(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        driver.add(AUTHENTICATED_MARKER, FakeElement())
        clock = FakeClock()
        launcher = FakeLauncher(driver)

        async with SessionController.create(
            mock_config, launcher=launcher, clock=clock.now, sleep=clock.sleep
        ) as session:
            await session.login()
            assert session.is_open

        assert driver.quit_called
        assert launcher.stopped == 1
        assert not session.is_open

    @pytest.mark.asyncio
    async def test_create_closes_on_failure(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        clock = FakeClock()
        launcher = FakeLauncher(driver)

        with pytest.raises(LoginError):
            async with SessionController.create(
                mock_config, launcher=launcher, clock=clock.now, sleep=clock.sleep
            ) as session:
                await session.login()

        assert driver.quit_called
        assert launcher.stopped == 1

    @pytest.mark.asyncio
    async def test_launch_failure_is_setup_error(self, mock_config: GlobalConfig) -> None:
        launcher = FakeLauncher(FakeDriver(), error=RuntimeError("no chromium"))
        session = SessionController(mock_config, launcher=launcher)

        with pytest.raises(BrowserInitializationError):
            await session.open()

        assert not session.is_open

    @pytest.mark.asyncio
    async def test_user_agent_rotation_failure_is_not_fatal(self, mock_config: GlobalConfig) -> None:
        driver = FakeDriver()
        driver.failing_scripts.add("userAgent")
        session, _, _ = make_session(mock_config, driver)

        await session.open()

        assert session.is_open

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, mock_config: GlobalConfig) -> None:
        session, launcher, _ = make_session(mock_config, FakeDriver())
        await session.open()

        await session.close()
        await session.close()

        assert launcher.stopped == 2
        assert not session.is_open

    @pytest.mark.asyncio
    async def test_cancel_interrupts_login_wait(self, mock_config: GlobalConfig) -> None:
        driver = login_page()
        session, _, _ = make_session(mock_config, driver)
        await session.open()
        session.cancel()

        with pytest.raises(WaitCancelledError):
            await session.login()

        assert session.state is SessionState.FAILED
        assert driver.elements[LOGIN_EMAIL_FIELD][0].typed == []
