"""Logging configuration for envcraft.

Provides:
- Console output on stderr, quiet by default so command output stays clean
- File-based logging with rotation
- Performance timing helpers for store and lifecycle operations

Environment Variables:
    ENVCRAFT_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: WARNING)
    ENVCRAFT_LOG_FILE: Path to log file (default: ~/.envcraft/envcraft.log)
    ENVCRAFT_LOG_MAX_SIZE: Max log file size in MB (default: 5)
    ENVCRAFT_LOG_BACKUPS: Number of backup files to keep (default: 3)

Usage:
    from envcraft.utils.logging_config import setup_logging, timed

    setup_logging(log_file, "WARNING")  # Call once at startup

    @timed("switch")
    def switch_to(self, name):
        ...

    # Or use context manager for sections:
    with timed_section("clear", environment="dev"):
        ...
"""
import functools
import logging
import os
import sys
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("envcraft.perf")


def parse_log_level(level_str: str) -> int:
    """Map a level name to a logging constant, defaulting to WARNING."""
    return getattr(logging, level_str.upper(), logging.WARNING)


def setup_logging(
    log_file: Optional[Path] = None,
    level: str = "WARNING",
) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler on stderr at the requested level
    - File handler with rotation (DEBUG level - captures everything)
    - Performance records go to the same file, tagged PERF

    A log file that cannot be created is skipped with a console warning.
    """
    log_level = parse_log_level(level)
    max_size_mb = int(os.environ.get("ENVCRAFT_LOG_MAX_SIZE", "5"))
    backup_count = int(os.environ.get("ENVCRAFT_LOG_BACKUPS", "3"))

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-24s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger("envcraft")
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("envcraft: %(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    # Perf records are filed separately; keep them off the console handler above
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False
    perf_logger.handlers.clear()

    if log_file is None:
        return

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
    except OSError as e:
        root_logger.warning(f"File logging disabled: {e}")
        return

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)
    root_logger.addHandler(file_handler)

    perf_handler = RotatingFileHandler(
        log_file.parent / "envcraft-perf.log",
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)
    perf_logger.addHandler(perf_handler)

    root_logger.debug(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def timed(operation: str):
    """Decorator to log execution time of a function.

    Usage:
        @timed("commit")
        def commit_staged(self, message):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.info(f"{operation:20s} | {elapsed:8.2f}ms | OK")
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(f"{operation:20s} | {elapsed:8.2f}ms | FAIL: {e}")
                raise

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, environment: Optional[str] = None, **extra):
    """Context manager for timing code sections."""
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:20s} | {environment or 'N/A':15s} | {elapsed:8.2f}ms | OK"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.info(msg)
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:20s} | {environment or 'N/A':15s} | {elapsed:8.2f}ms | FAIL: {e}"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise
