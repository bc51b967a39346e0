# ============================================================
# FILE: utils/exceptions.py
# ============================================================

"""Exceptions raised across LeopardGuard components."""

from typing import Any, Dict, Optional


class LeopardGuardError(Exception):
    """Base exception for all LeopardGuard errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause


class ConfigurationError(LeopardGuardError):
    """Raised when the configuration file is missing or malformed."""
    pass


class DeviceConnectionError(LeopardGuardError):
    """Raised when no serial device is found or the port cannot be opened."""
    pass


class CaptureError(LeopardGuardError):
    """Raised when the camera is not initialized or a capture fails."""
    pass


class ClassifyError(LeopardGuardError):
    """Raised when the model is not loaded or inference fails."""
    pass


class SendError(LeopardGuardError):
    """Raised when a command cannot be written to the serial port."""
    pass


class StepTimeoutError(LeopardGuardError):
    """Raised when a pipeline step does not finish before its deadline."""
    pass
