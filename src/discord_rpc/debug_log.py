"""Logging setup with an in-memory ring buffer for post-mortem export.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed by applications (and the CLI) through ``setup_logging``.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from discord_rpc.limits import MAX_LOG_MESSAGE_LENGTH

LOGGER_NAME = "discord_rpc"


@dataclass(slots=True)
class LogEntry:
    """A captured log entry."""

    group: str  # Level name (DEBUG, INFO, WARNING, ERROR, etc.)
    name: str
    message: str
    timestamp: float


# Global log buffer (ring buffer)
MAX_LOG_LINES = 2000
log_buffer: deque[LogEntry] = deque(maxlen=MAX_LOG_LINES)

# Track generation to detect buffer clears
_buffer_generation: int = 0


class DebugLogHandler(logging.Handler):
    """Logging handler that captures logs to the debug buffer."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            if len(msg) > MAX_LOG_MESSAGE_LENGTH:
                msg = msg[:MAX_LOG_MESSAGE_LENGTH] + "... [truncated]"
            log_buffer.append(
                LogEntry(
                    group=record.levelname,
                    name=record.name,
                    message=msg,
                    timestamp=record.created,
                )
            )
        except Exception:
            self.handleError(record)


_logging_initialized: bool = False


def setup_logging(verbose: bool = False, *, stream: bool = True) -> None:
    """Attach the buffer handler (and optionally stderr) to the package logger.

    Idempotent apart from the level, which follows the latest *verbose*.
    """
    global _logging_initialized
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if _logging_initialized:
        return

    buffer_handler = DebugLogHandler()
    buffer_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    package_logger.addHandler(buffer_handler)

    if stream:
        stderr_handler = logging.StreamHandler()
        stderr_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", "%H:%M:%S")
        )
        package_logger.addHandler(stderr_handler)

    _logging_initialized = True
    package_logger.debug("Debug logging initialized")


def clear_log_buffer() -> None:
    """Clear the log buffer."""
    global _buffer_generation
    log_buffer.clear()
    _buffer_generation += 1


def get_buffer_generation() -> int:
    """Get the current buffer generation (incremented on clear)."""
    return _buffer_generation


def export_logs_to_file(file_path: str | Path) -> int:
    """Export all logs from the buffer to a file.

    Args:
        file_path: Path to write the log file to

    Returns:
        Number of log entries written
    """
    output_path = Path(file_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    entries = list(log_buffer)
    with output_path.open("w", encoding="utf-8") as f:
        f.write("# discord-rpc debug log export\n")
        f.write(f"# Total entries: {len(entries)}\n")
        f.write(f"# Buffer generation: {_buffer_generation}\n")
        f.write("# " + "=" * 76 + "\n\n")

        for entry in entries:
            ts = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            f.write(f"{ts} [{entry.group}] {entry.message}\n")

    return len(entries)


__all__ = [
    "DebugLogHandler",
    "LogEntry",
    "clear_log_buffer",
    "export_logs_to_file",
    "get_buffer_generation",
    "log_buffer",
    "setup_logging",
]
