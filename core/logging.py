"""Logging utilities for console output and the validation report log."""

from __future__ import annotations

import atexit
import logging
import logging.handlers
from pathlib import Path
import queue

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from validation.models import LogEntry, Severity
from validation.report import format_entry, format_timestamp

SEVERITY_STYLES = {
    Severity.PASS: "green",
    Severity.FAIL: "red",
    Severity.WARN: "yellow",
    Severity.INFO: "blue",
}

console = Console(highlight=False)
error_console = Console(stderr=True, highlight=False)


def setup_logging() -> logging.Logger:
    logger = logging.getLogger("nvme_validation")
    logger.setLevel(logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(rich_tracebacks=True, console=error_console)
        formatter = logging.Formatter("%(message)s", datefmt="[%X]")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def _setup_report_logger() -> logging.Logger:
    report = logging.getLogger("nvme_validation.report")
    report.setLevel(logging.INFO)
    report.propagate = False
    return report


logger = setup_logging()
report_logger = _setup_report_logger()

_queue_listener: logging.handlers.QueueListener | None = None
_queue_handlers: list[logging.Handler] = []
_file_log_path: Path | None = None
_atexit_registered = False


def set_level(level_name: str) -> None:
    """Set the diagnostic logger level by name."""

    logger.setLevel(logging._nameToLevel.get(level_name.upper(), logging.WARNING))


def _shutdown_file_logging() -> None:
    global _queue_listener

    if _queue_listener is not None:
        _queue_listener.stop()
        _queue_listener = None


def _remove_queue_handlers() -> None:
    for handler in _queue_handlers:
        if handler in report_logger.handlers:
            report_logger.removeHandler(handler)
    _queue_handlers.clear()


def enable_file_logging(log_path: Path) -> None:
    """Append report text to ``log_path`` through a background queue listener."""

    global _queue_listener, _file_log_path, _atexit_registered

    log_path = Path(log_path).expanduser()
    if _file_log_path == log_path and _queue_listener is not None:
        return

    if _queue_listener is not None:
        _queue_listener.stop()
        _queue_listener = None

    _remove_queue_handlers()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter("%(message)s"))

    log_queue: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    queue_handler = logging.handlers.QueueHandler(log_queue)
    queue_handler.setLevel(logging.INFO)
    report_logger.addHandler(queue_handler)
    _queue_handlers.append(queue_handler)

    _queue_listener = logging.handlers.QueueListener(
        log_queue,
        file_handler,
        respect_handler_level=True,
    )
    _queue_listener.start()

    if getattr(_queue_listener, "_thread", None) is not None:
        _queue_listener._thread.daemon = True

    _file_log_path = log_path

    if not _atexit_registered:
        atexit.register(_shutdown_file_logging)
        _atexit_registered = True


def disable_file_logging() -> None:
    """Flush and detach the report log file."""

    global _file_log_path

    _shutdown_file_logging()
    for handler in _queue_handlers:
        handler.close()
    _remove_queue_handlers()
    _file_log_path = None


def emit(text: str, style: str | None = None) -> None:
    """Print report text to the console and append it to the report log."""

    console.print(Text(text, style=style or ""))
    report_logger.info(text)


def emit_entry(entry: LogEntry) -> None:
    """Print an entry with a color-coded severity and append it plain to the log."""

    line = Text()
    line.append("[")
    line.append(entry.severity.value, style=SEVERITY_STYLES[entry.severity])
    line.append(f"] [{format_timestamp(entry.timestamp)}] [{entry.module}] {entry.message}")
    console.print(line)
    report_logger.info(format_entry(entry))


def log_error(message: str) -> None:
    error_console.print(Text(message, style="bold red"))


def log_hint(message: str) -> None:
    error_console.print(Text(message, style="yellow"))
