"""
Exception types raised by the Dexcom helper.

Validation failures are raised synchronously and carry the offending field;
upstream failures wrap whatever the Dexcom API or the transport reported.
"""

from typing import Optional


class DexcomError(Exception):
    """Base exception for Dexcom helper errors."""
    pass


class ValidationError(DexcomError, ValueError):
    """Raised when an input fails a documented precondition."""

    def __init__(self, message: str, field: Optional[str] = None,
                 constraint: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.constraint = constraint


class UpstreamError(DexcomError):
    """Raised when a call to the Dexcom API fails."""

    def __init__(self, message: str, status: Optional[int] = None,
                 body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body
