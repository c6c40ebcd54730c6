from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    CONFIG_ERROR = 2
    DESIGN_ERROR = 3
    VALIDATION_FAILED = 4
    EXPORT_ERROR = 5


class CanvasError(Exception):
    """Base error for the designer core and CLI."""


class ConfigError(CanvasError):
    """Raised for configuration or argument issues."""


class DesignError(CanvasError):
    """Raised when a design document or a design mutation is invalid."""


class ExportError(CanvasError):
    """Raised when writing generated artifacts fails."""


def as_exit_code(exc: BaseException) -> int:
    if isinstance(exc, (ConfigError, ValueError)):
        return int(ExitCode.CONFIG_ERROR)
    if isinstance(exc, DesignError):
        return int(ExitCode.DESIGN_ERROR)
    if isinstance(exc, (ExportError, OSError)):
        return int(ExitCode.EXPORT_ERROR)
    if isinstance(exc, CanvasError):
        return int(ExitCode.DESIGN_ERROR)
    return 1
