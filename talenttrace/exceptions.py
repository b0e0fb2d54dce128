"""Custom exception hierarchy for TalentTrace.

Each exception carries a context dictionary (URL, selector, session state)
so failures can be logged as structured records and traced back to the
page element that caused them.

Phases surfaced to callers:
    - setup: BrowserInitializationError
    - login: LoginError
    - obstruction: ObstructionError
    - validation: ProfileValidationError

Extraction-level errors (ExtractionError, ElementNotFoundError) are
recovered inside the pipeline and only ever show up as log warnings.
"""

from datetime import UTC, datetime
from typing import Any


class TalentTraceError(Exception):
    """Base exception for all TalentTrace errors.

    Attributes:
        message: Human-readable error description.
        context: Optional dictionary with additional debugging information.
        timestamp: UTC timestamp when the exception was raised.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(UTC)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format exception message with context for logging."""
        base = f"[{self.timestamp.isoformat()}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} | Context: {context_str}"
        return base


class ConfigValidationError(TalentTraceError):
    """Raised at startup when GlobalConfig rejects the environment.

    The offending value must already be redacted by the caller.
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(
            message=f"Configuration validation failed for '{field}': {reason}",
            context={"field": field, "value": value, "reason": reason},
        )


class LoggingInitializationError(TalentTraceError):
    """Raised when the logging system fails to initialize."""

    def __init__(self, log_dir: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to initialize logging at '{log_dir}': {reason}",
            context={"log_dir": log_dir, "reason": reason},
        )


class BrowserInitializationError(TalentTraceError):
    """Raised when the browser or its automation service cannot start.

    This is a setup failure: fatal for the run and never retried.
    """

    def __init__(self, reason: str, browser_type: str = "chromium") -> None:
        super().__init__(
            message=f"Failed to initialize {browser_type} browser: {reason}",
            context={"browser_type": browser_type, "reason": reason},
        )


class DriverError(TalentTraceError):
    """Raised when an automation driver call fails.

    Wraps the underlying browser library error together with the location
    strategy (if any) that was being used.
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        strategy: str | None = None,
        message: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        merged = {"operation": operation, "strategy": strategy, "reason": reason}
        merged.update(context or {})
        super().__init__(
            message=message or f"Driver operation '{operation}' failed: {reason}",
            context=merged,
        )
        self.operation = operation
        self.strategy = strategy


class NavigationError(DriverError):
    """Raised when page navigation fails."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(
            operation="get",
            reason=reason,
            message=f"Navigation to '{url}' failed: {reason}",
            context={"url": url, "status_code": status_code},
        )
        self.url = url
        self.status_code = status_code


class ElementNotFoundError(DriverError):
    """Raised when a location strategy matches no element.

    This is the driver's ordinary not-found condition; extraction code
    branches on it rather than treating it as a crash.
    """

    def __init__(self, strategy: str, reason: str = "no matching element") -> None:
        super().__init__(operation="find_element", reason=reason, strategy=strategy)


class WaitTimeoutError(ElementNotFoundError):
    """Raised when a bounded wait elapses without the target appearing."""

    def __init__(self, target: str, timeout: float) -> None:
        super().__init__(strategy=target, reason=f"not found after {timeout:g}s")
        self.timeout = timeout


class WaitCancelledError(TalentTraceError):
    """Raised when a bounded wait is cancelled through its token."""

    def __init__(self, target: str) -> None:
        super().__init__(
            message=f"Wait for '{target}' was cancelled",
            context={"target": target},
        )


class ExtractionError(TalentTraceError):
    """Raised when a field or section is not found by any strategy.

    Attributes:
        field: Logical field or section name (e.g. "experience").
        strategies: Rendered location strategies that were tried.
    """

    def __init__(self, field: str, strategies: list[str], reason: str) -> None:
        super().__init__(
            message=f"Extraction failed for '{field}': {reason}",
            context={"field": field, "strategies": strategies, "reason": reason},
        )
        self.field = field
        self.strategies = strategies


class AuthenticationError(TalentTraceError):
    """Base class for errors raised by the login state machine.

    Attributes:
        state: Terminal session state reached by the attempt.
    """

    def __init__(self, message: str, state: str, context: dict[str, Any] | None = None) -> None:
        merged = {"state": state}
        merged.update(context or {})
        super().__init__(message=message, context=merged)
        self.state = state


class LoginError(AuthenticationError):
    """Raised when login fails: missing field, submit failure or timeout."""

    def __init__(self, reason: str, state: str = "failed", strategy: str | None = None) -> None:
        super().__init__(
            message=f"Login failed: {reason}",
            state=state,
            context={"strategy": strategy},
        )
        self.strategy = strategy


class ObstructionError(AuthenticationError):
    """Raised when a CAPTCHA, verification wall or rate limit is detected.

    Kept apart from LoginError so callers can apply their own
    cool-down-and-retry policy.
    """

    def __init__(self, kind: str, strategy: str, url: str | None = None) -> None:
        super().__init__(
            message=f"Obstruction detected ({kind})",
            state="obstructed",
            context={"kind": kind, "strategy": strategy, "url": url},
        )
        self.kind = kind
        self.strategy = strategy


class SessionStateError(TalentTraceError):
    """Raised when an operation needs a session state it does not have."""

    def __init__(self, operation: str, state: str, required: str) -> None:
        super().__init__(
            message=f"Cannot {operation} while session is '{state}' (requires '{required}')",
            context={"operation": operation, "state": state, "required": required},
        )


class ProfileValidationError(TalentTraceError):
    """Raised when the assembled profile lacks its required fields."""

    def __init__(self, profile_url: str, missing: list[str]) -> None:
        super().__init__(
            message="Profile validation failed - insufficient data extracted",
            context={"profile_url": profile_url, "missing": missing},
        )
        self.missing = missing


class ExportError(TalentTraceError):
    """Raised when exporting profiles to disk fails."""

    def __init__(self, export_type: str, reason: str, output_path: str | None = None) -> None:
        super().__init__(
            message=f"Failed to export {export_type}: {reason}",
            context={"export_type": export_type, "reason": reason, "output_path": output_path},
        )
