"""TalentTrace Entry Point.

Bootstrap and orchestration layer. All scraping logic lives in the
``talenttrace`` package.

Responsibilities:
    1. Parse command-line arguments
    2. Load and validate configuration
    3. Initialize logging infrastructure (fail-fast on error)
    4. Run login, scrape and export for one profile
    5. Map the failing phase to an exit code

Exit codes:
    0   profile scraped and exported
    1   setup, login, validation or export failure
    3   obstruction (CAPTCHA, challenge or rate limit)
    130 interrupted

Usage:
    python main.py --profile https://www.linkedin.com/in/jane-doe
    python main.py --profile linkedin.com/in/jane-doe --format both --output jane
"""

import argparse
import asyncio
import sys

from loguru import logger
from pydantic import ValidationError

from config.settings import GlobalConfig, get_config
from talenttrace.exceptions import (
    ConfigValidationError,
    LoggingInitializationError,
    ObstructionError,
    TalentTraceError,
)
from talenttrace.logger import configure_logging, redact_value
from talenttrace.utils import normalize_profile_url, username_from_url, validate_profile_url

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_OBSTRUCTED = 3
EXIT_INTERRUPTED = 130


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="talenttrace",
        description="Scrape a LinkedIn profile and export it to CSV/JSON.",
    )
    parser.add_argument("--profile", required=True, help="LinkedIn profile URL to scrape")
    parser.add_argument(
        "--output",
        default=None,
        help="Base file name for exports (default: linkedin_profiles_<timestamp>)",
    )
    parser.add_argument(
        "--format",
        dest="export_format",
        choices=("csv", "json", "both"),
        default=None,
        help="Export format (default: EXPORT_FORMAT setting)",
    )
    return parser.parse_args(argv)


def _config_error(exc: ValidationError) -> ConfigValidationError:
    """Describe the first rejected setting without leaking its value."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or "settings"
    return ConfigValidationError(
        field=field,
        value=redact_value(field, error.get("input")),
        reason=error["msg"],
    )


def _validate_startup_requirements(config: GlobalConfig) -> None:
    """Pre-flight checks before the browser is launched.

    Raises:
        SystemExit: If the output directory cannot be created.
    """
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.critical(
            "Failed to create output directory",
            output_dir=str(config.output_dir),
            error=str(exc),
        )
        sys.exit(EXIT_FAILURE)

    if not config.linkedin_email or not config.linkedin_password:
        logger.warning("LinkedIn credentials are not configured; login will fail")

    logger.debug(
        "Startup validation complete",
        output_dir=str(config.output_dir),
        headless=config.headless,
    )


async def _run_pipeline(config: GlobalConfig, args: argparse.Namespace) -> int:
    """Open a session, log in, scrape one profile and export it.

    Args:
        config: The validated GlobalConfig instance.
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    from talenttrace.exporter import ProfileExporter
    from talenttrace.scraper import ProfileScraper
    from talenttrace.session import SessionController

    profile_url = normalize_profile_url(args.profile)
    validate_profile_url(profile_url)

    logger.info(
        "Pipeline execution started",
        app_name=config.app_name,
        environment=config.environment,
        profile_url=profile_url,
        username=username_from_url(profile_url),
    )

    # Phase 1: Browser session and login
    async with SessionController.create(config) as session:
        await session.login()
        logger.info("Logged in")

        # Phase 2: Profile extraction
        profile = await ProfileScraper(session).scrape_profile(profile_url)

    # Phase 3: Export
    exporter = ProfileExporter(config)
    paths = exporter.export([profile], fmt=args.export_format, filename=args.output)

    logger.info(
        "Pipeline execution completed successfully",
        name=profile.name,
        outputs={kind: str(path) for kind, path in paths.items()},
    )
    return EXIT_OK


def _handle_fatal_error(exc: Exception) -> int:
    """Log a fatal error and map it to an exit code."""
    if isinstance(exc, ObstructionError):
        logger.critical(
            "Obstruction detected - stopping without retry",
            kind=exc.kind,
            strategy=exc.strategy,
        )
        return EXIT_OBSTRUCTED

    if isinstance(exc, TalentTraceError):
        logger.critical(
            "Fatal application error",
            error_type=type(exc).__name__,
            message=exc.message,
            context=exc.context,
        )
        return EXIT_FAILURE

    if isinstance(exc, ValueError):
        logger.critical("Invalid input", error=str(exc))
        return EXIT_FAILURE

    # Unexpected error - log full traceback
    logger.exception("Unexpected fatal error", error=str(exc))
    return EXIT_FAILURE


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = _parse_args(argv)

    # Step 1: Load configuration (validates via Pydantic)
    try:
        config = get_config()
    except ValidationError as exc:
        print(f"FATAL: {_config_error(exc)}", file=sys.stderr)
        return EXIT_FAILURE
    except Exception as exc:
        # Cannot log yet - print to stderr
        print(f"FATAL: Configuration loading failed: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    # Step 2: Initialize logging (fail-fast)
    try:
        configure_logging(config)
    except LoggingInitializationError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    # Step 3: Validate startup requirements
    _validate_startup_requirements(config)

    # Step 4: Execute async pipeline
    try:
        return asyncio.run(_run_pipeline(config, args))
    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user (Ctrl+C)")
        return EXIT_INTERRUPTED
    except Exception as exc:
        return _handle_fatal_error(exc)


if __name__ == "__main__":
    sys.exit(main())
