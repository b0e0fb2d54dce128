"""Global configuration management using pydantic-settings.

Values are loaded from environment variables (or a local .env file) with
strict type validation. Every option carries a default so the scraper can
start from an empty environment; only the login credentials have to be
supplied for a real run.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Ceiling for any single humanized pause, in seconds.
MAX_DELAY_SECONDS = 60.0


class GlobalConfig(BaseSettings):
    """Centralized configuration with environment variable binding.

    Attributes:
        app_name: Application identifier for logging.
        environment: Deployment environment.
        debug: Enable verbose tracebacks in log output.
        chromedriver_path: Legacy driver binary path, accepted but unused
            because Playwright manages its own browser binaries.
        headless: Run the browser without a visible window.
        window_size: Browser window size as "<width>,<height>".
        port: Remote debugging port handed to the browser.
        timeout_seconds: Page navigation timeout.
        linkedin_email: Login identifier.
        linkedin_password: Login secret.
        base_url: Site root.
        login_url: Login form URL.
        min_delay_sec: Lower bound for randomized inter-phase delays.
        max_delay_sec: Upper bound for randomized inter-phase delays.
        page_load_delay_sec: Fixed wait after navigation and login submit.
        element_search_delay_sec: Bounded wait for required elements.
        scroll_delay_sec: Base pause between scroll steps.
        login_timeout_sec: Bounded wait for the post-login marker.
        poll_interval_sec: Sleep between attempts of a bounded wait.
        backoff_min_seconds: Lower bound of the rate-limit cool-down.
        backoff_max_seconds: Upper bound of the rate-limit cool-down.
        random_seed: Seed for the per-session random generator.
        simulate_mouse: Dispatch synthetic pointer moves before scrolling.
        check_profile_obstruction: Scan profile pages for challenges.
        user_agents: Rotating user-agent strings.
        log_level: Minimum log level.
        log_dir: Directory for structured JSON log files.
        log_rotation: Log file rotation interval.
        log_retention: Log file retention period.
        output_dir: Directory for exported profiles.
        export_format: Default export format.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Metadata
    app_name: str = Field(default="TalentTrace", description="Application identifier")
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Browser Configuration
    chromedriver_path: str | None = Field(
        default=None, description="Driver binary path (unused with Playwright)"
    )
    headless: bool = Field(default=True, description="Run browser in headless mode")
    window_size: str = Field(default="1920,1080", description="Window size 'W,H'")
    port: int = Field(default=9515, ge=1, le=65535, description="Remote debugging port")
    timeout_seconds: int = Field(
        default=30, ge=1, le=300, description="Page navigation timeout in seconds"
    )

    # Target Configuration
    linkedin_email: str = Field(default="", description="Login identifier")
    linkedin_password: str = Field(default="", description="Login password")
    base_url: str = Field(default="https://www.linkedin.com", description="Site root")
    login_url: str = Field(
        default="https://www.linkedin.com/login", description="Login form URL"
    )

    # Humanized Timing
    min_delay_sec: float = Field(
        default=2.0, ge=0.0, le=MAX_DELAY_SECONDS, description="Minimum random delay"
    )
    max_delay_sec: float = Field(
        default=5.0, ge=0.0, le=MAX_DELAY_SECONDS, description="Maximum random delay"
    )
    page_load_delay_sec: float = Field(
        default=3.0, ge=0.0, description="Fixed wait after navigation"
    )
    element_search_delay_sec: float = Field(
        default=10.0, ge=0.0, description="Bounded wait for required elements"
    )
    scroll_delay_sec: float = Field(default=0.5, ge=0.0, description="Base scroll pause")
    login_timeout_sec: float = Field(
        default=10.0, ge=0.0, description="Bounded wait for the post-login marker"
    )
    poll_interval_sec: float = Field(
        default=0.5, gt=0.0, le=5.0, description="Sleep between wait attempts"
    )
    random_seed: int | None = Field(default=None, description="Session RNG seed")
    simulate_mouse: bool = Field(default=True, description="Synthetic pointer moves")

    # Defense Handling
    backoff_min_seconds: float = Field(
        default=300.0, ge=0.0, description="Minimum rate-limit cool-down"
    )
    backoff_max_seconds: float = Field(
        default=600.0, ge=0.0, description="Maximum rate-limit cool-down"
    )
    check_profile_obstruction: bool = Field(
        default=True, description="Scan profile pages for challenges"
    )

    # Stealth Configuration - User Agent Rotation Pool
    user_agents: list[str] = Field(
        default=[
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0",
        ],
        description="User-agent rotation pool for stealth",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    log_dir: Path = Field(default=Path("logs"), description="Log output directory")
    log_rotation: str = Field(default="1 week", description="Log rotation interval")
    log_retention: str = Field(default="1 month", description="Log retention period")

    # Output Configuration
    output_dir: Path = Field(
        default=Path("data/output"), description="Profile export directory"
    )
    export_format: Literal["csv", "json", "both"] = Field(
        default="csv", description="Default export format"
    )

    @field_validator("log_dir", "output_dir", mode="before")
    @classmethod
    def ensure_path(cls, value: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(value) if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        """Accept lowercase level names such as 'info'."""
        return value.upper() if isinstance(value, str) else value

    @field_validator("window_size")
    @classmethod
    def validate_window_size(cls, value: str) -> str:
        """Ensure window_size parses as two positive integers."""
        parts = value.split(",")
        if len(parts) != 2:
            raise ValueError(f"invalid window size format: {value}")
        try:
            width, height = (int(part.strip()) for part in parts)
        except ValueError as exc:
            raise ValueError(f"invalid window size format: {value}") from exc
        if width <= 0 or height <= 0:
            raise ValueError(f"window size must be positive: {value}")
        return f"{width},{height}"

    @field_validator("user_agents")
    @classmethod
    def validate_user_agents(cls, value: list[str]) -> list[str]:
        """The rotation pool must hold at least one non-blank entry."""
        cleaned = [agent.strip() for agent in value if agent.strip()]
        if not cleaned:
            raise ValueError("user_agents must contain at least one entry")
        return cleaned

    @property
    def viewport(self) -> tuple[int, int]:
        """Window size as a (width, height) tuple."""
        width, height = self.window_size.split(",")
        return int(width), int(height)


@lru_cache(maxsize=1)
def get_config() -> GlobalConfig:
    """Retrieve the singleton GlobalConfig instance.

    Returns:
        GlobalConfig: The validated configuration instance.
    """
    return GlobalConfig()
