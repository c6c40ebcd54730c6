from __future__ import annotations

from .rules import ValidationResult, describe_connection
from .validator import (
    ConnectionValidator,
    ContainmentIssue,
    check_containment,
    replay_connections,
    validate_connection,
    would_create_cycle,
)

__all__ = [
    "ConnectionValidator",
    "ContainmentIssue",
    "ValidationResult",
    "check_containment",
    "describe_connection",
    "replay_connections",
    "validate_connection",
    "would_create_cycle",
]
