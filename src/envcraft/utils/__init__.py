"""Logging, audit and retry helpers."""
from .audit_log import TransitionRecord, log_transition, read_transitions, setup_audit_logging
from .logging_config import setup_logging, timed, timed_section, perf_logger
from .retry import with_retry

__all__ = [
    "TransitionRecord",
    "log_transition",
    "read_transitions",
    "setup_audit_logging",
    "setup_logging",
    "timed",
    "timed_section",
    "perf_logger",
    "with_retry",
]
