"""Loguru sinks for signalscan.

Scans run either as one-shot CLI invocations (stderr only) or inside a
long-lived service (stderr plus rotating files). ``json_logs`` switches
every sink to loguru's serialised records for log shippers.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def _file_sink(path: str, level: str, json_logs: bool) -> int:
    return logger.add(
        path,
        level=level,
        format=FILE_FORMAT,
        serialize=json_logs,
        rotation="10 MB",
        retention=5,
        compression="zip",
        enqueue=True,
    )


def error_log_path(log_file: str) -> str:
    """``logs/signalscan.log`` -> ``logs/signalscan_error.log``."""
    path = Path(log_file)
    return str(path.with_name(f"{path.stem}_error{path.suffix or '.log'}"))


def setup_logger(
    log_level: str = "INFO",
    log_file: str | None = None,
    json_logs: bool = False,
) -> list[int]:
    """Replace loguru's handlers with the signalscan sinks.

    Args:
        log_level: Minimum level for the console and main file sink.
        log_file: Main log file. Falsy keeps logging on stderr only;
            otherwise an ``*_error.log`` sibling receives ERROR and above.
        json_logs: Emit serialised JSON records instead of text lines.

    Returns:
        The loguru handler ids that were added.
    """
    logger.remove()
    handler_ids = [
        logger.add(
            sys.stderr,
            level=log_level,
            format=CONSOLE_FORMAT,
            colorize=not json_logs,
            serialize=json_logs,
        )
    ]
    if log_file:
        handler_ids.append(_file_sink(log_file, log_level, json_logs))
        handler_ids.append(_file_sink(error_log_path(log_file), "ERROR", json_logs))

    logger.debug("Logging at {} to {}", log_level, log_file or "stderr")
    return handler_ids
