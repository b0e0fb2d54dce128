"""Structured logging for TalentTrace, built on loguru.

Sinks:
- stderr: colorized, human-readable lines for the operator
- ``talenttrace_<date>.json``: one JSON object per line, rotated,
  retained and gzip-compressed according to GlobalConfig

Redaction:
    ``redact_record`` is installed as the loguru patcher, so it runs on
    every record before any sink formats it. Extras whose key names a
    secret (password, token, cookie, ...) and any ``SecretStr`` value are
    replaced by a fixed mask, and e-mail addresses in messages and extras
    are reduced to their first character and domain. Login credentials
    never reach a log line, whichever module emits the record.

Context:
    ``get_logger(name, **context)`` binds the component name plus any
    correlation fields (``session``, ``url``). They land under
    ``context`` in the JSON line next to per-call keyword arguments.
"""

import json
import re
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import SecretStr

from config.settings import GlobalConfig, get_config
from talenttrace.exceptions import LoggingInitializationError

MASK = "**********"

# Substrings of extra keys whose values are always masked.
SENSITIVE_KEY_MARKERS = ("password", "secret", "token", "cookie", "credential")

LOG_FILE_NAME = "talenttrace_{time:YYYY-MM-DD}.json"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

_EMAIL_PATTERN = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")

# Keys the file formatter stores in ``extra`` for its own use.
_INTERNAL_KEYS = frozenset({"component", "json_line"})


def mask_email(text: str) -> str:
    """Reduce every e-mail address in ``text`` to ``j***@domain``."""
    return _EMAIL_PATTERN.sub(r"\1***@\2", text)


def redact_value(key: str, value: Any) -> Any:
    """Return ``value`` with secrets masked, recursing into containers."""
    if isinstance(value, SecretStr):
        return MASK
    if any(marker in key.lower() for marker in SENSITIVE_KEY_MARKERS):
        return MASK
    if isinstance(value, str):
        return mask_email(value)
    if isinstance(value, dict):
        return {k: redact_value(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact_value(key, item) for item in value]
    return value


def redact_record(record: dict[str, Any]) -> None:
    """Loguru patcher scrubbing credentials from a record in place."""
    record["message"] = mask_email(record["message"])
    for key, value in list(record["extra"].items()):
        record["extra"][key] = redact_value(key, value)
    record["extra"].setdefault("component", record["name"])


def format_json_line(record: dict[str, Any]) -> str:
    """Render an already redacted record as a single JSON line."""
    extra = record["extra"]
    line: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "component": extra.get("component", record["name"]),
        "function": record["function"],
        "line": record["line"],
    }

    context = {k: v for k, v in extra.items() if k not in _INTERNAL_KEYS}
    if context:
        line["context"] = context

    exception = record["exception"]
    if exception is not None:
        line["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": mask_email(str(exception.value)) if exception.value else None,
        }

    return json.dumps(line, default=str)


def _file_format(record: dict[str, Any]) -> str:
    record["extra"]["json_line"] = format_json_line(record)
    return "{extra[json_line]}\n"


def _prepare_log_directory(log_dir: Path) -> None:
    """Create ``log_dir`` and prove it is writable.

    Raises:
        LoggingInitializationError: If the directory cannot be created or
            written to.
    """
    check_file = log_dir / ".talenttrace_write_check"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        check_file.touch()
        check_file.unlink()
    except OSError as exc:
        kind = "permission denied" if isinstance(exc, PermissionError) else "not writable"
        raise LoggingInitializationError(log_dir=str(log_dir), reason=f"{kind}: {exc}") from exc


def configure_logging(config: GlobalConfig | None = None) -> None:
    """Install redaction and both sinks. Call once, before the browser starts.

    Raises:
        LoggingInitializationError: If the log directory is unusable.
    """
    config = config or get_config()

    logger.remove()
    _prepare_log_directory(config.log_dir)

    logger.configure(patcher=redact_record, extra={"component": "talenttrace"})

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=config.log_level,
        colorize=True,
        backtrace=config.debug,
        diagnose=config.debug,
    )
    logger.add(
        str(config.log_dir / LOG_FILE_NAME),
        format=_file_format,
        level=config.log_level,
        rotation=config.log_rotation,
        retention=config.log_retention,
        compression="gz",
    )

    get_logger(__name__).info(
        "Logging initialized",
        environment=config.environment,
        log_level=config.log_level,
        log_dir=str(config.log_dir),
    )


def get_logger(name: str, **context: Any) -> "logger":
    """Return a logger bound to a component name and correlation fields.

    Example:
        >>> log = get_logger(__name__, session="3f9c1a2b")
        >>> log.warning("Section not found", section="education")
    """
    return logger.bind(component=name, **context)
