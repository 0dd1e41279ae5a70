"""Logging configuration with token redaction."""

import logging
import re
from typing import ClassVar


class SecretRedactingFilter(logging.Filter):
    """Filter that redacts tokens and credentials from log messages."""

    SECRET_PATTERNS: ClassVar[list[tuple[re.Pattern[str], str]]] = [
        # GitHub tokens: personal, OAuth, user-to-server, server-to-server, refresh
        (re.compile(r"gh[pousr]_[a-zA-Z0-9]{20,}"), "[REDACTED_GH_TOKEN]"),
        (re.compile(r"github_pat_[a-zA-Z0-9_]+"), "[REDACTED_GH_PAT]"),
        (re.compile(r"Bearer\s+[a-zA-Z0-9_\-\.]+"), "Bearer [REDACTED]"),
        (re.compile(r"(Authorization:\s*)[^\s,\]]+", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(token[=:]\s*)[^\s,\]]+", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(password[=:]\s*)[^\s,\]]+", re.IGNORECASE), r"\1[REDACTED]"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact secrets from the message and its string arguments."""
        record.msg = self._redact(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: self._redact(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            else:
                record.args = tuple(
                    self._redact(arg) if isinstance(arg, str) else arg for arg in record.args
                )
        return True

    def _redact(self, text: str) -> str:
        for pattern, replacement in self.SECRET_PATTERNS:
            text = pattern.sub(replacement, text)
        return text


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
) -> None:
    """Configure logging for the CLI.

    Logs go to stderr so command output on stdout stays scriptable. Only
    warnings and errors are shown unless verbose is set.

    Args:
        verbose: Enable debug level logging.
        json_format: Emit one JSON object per log line.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    if json_format:
        format_str = (
            '{"time": "%(asctime)s", "level": "%(levelname)s", '
            '"name": "%(name)s", "message": "%(message)s"}'
        )
    else:
        format_str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    redaction_filter = SecretRedactingFilter()

    for handler in root_logger.handlers:
        if not any(isinstance(f, SecretRedactingFilter) for f in handler.filters):
            handler.addFilter(redaction_filter)

    # Keep library loggers quiet, they log full request URLs and headers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
