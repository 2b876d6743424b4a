"""Audit logging for environment transitions.

Every lifecycle operation (new, switch, save, clear, ...) appends one JSON
line to a dedicated audit log, whether it succeeded or not.
"""
import json
import logging
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Create dedicated audit logger
audit_logger = logging.getLogger("envcraft.audit")


def setup_audit_logging(audit_file: Path) -> None:
    """Configure audit logging to file.

    Args:
        audit_file: Path of the JSON-lines audit log
    """
    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()

    # Don't propagate to the envcraft logger (console/file)
    audit_logger.propagate = False

    try:
        audit_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            audit_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=5,
            encoding="utf-8",
        )
    except OSError as e:
        logging.getLogger(__name__).warning(f"Audit logging disabled: {e}")
        audit_logger.addHandler(logging.NullHandler())
        return

    # Use JSON format for machine-readability
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)


@dataclass
class TransitionRecord:
    """Record of one lifecycle operation."""
    timestamp: str
    workdir: str
    operation: str  # new, switch, delete, rename, save, revert, clear
    environment: Optional[str]
    success: bool
    parameters: dict = field(default_factory=dict)
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(asdict(self), indent=None)

    @classmethod
    def from_json(cls, json_str: str) -> "TransitionRecord":
        """Parse from JSON string."""
        data = json.loads(json_str)
        return cls(**data)


def log_transition(
    workdir: Path,
    operation: str,
    environment: Optional[str],
    success: bool,
    parameters: Optional[dict] = None,
    error: Optional[str] = None,
) -> TransitionRecord:
    """Write a transition record to the audit log.

    Returns:
        The TransitionRecord that was logged
    """
    record = TransitionRecord(
        timestamp=datetime.now(timezone.utc).isoformat(),
        workdir=str(workdir),
        operation=operation,
        environment=environment,
        success=success,
        parameters=parameters or {},
        error=error,
    )

    audit_logger.info(record.to_json())

    return record


def read_transitions(
    audit_file: Path,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[TransitionRecord]:
    """Read recent transitions from the audit log, most recent first."""
    if not audit_file.exists():
        return []

    records = []
    with open(audit_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = TransitionRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if operation and record.operation != operation:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
