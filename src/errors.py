"""Exceptions raised by the order processing pipeline."""
from __future__ import annotations

from typing import Optional


class OrderProcessingError(Exception):
    """Base exception for all order processing errors."""

    pass


class NoHandlerRegisteredError(OrderProcessingError):
    """Raised when a request is sent for a kind nobody handles.

    This is a wiring mistake, not a problem with the order data.
    """

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"No handler registered for request kind '{kind}'")


class HandlerInvocationError(OrderProcessingError):
    """Raised when a registered handler fails; keeps the original message."""

    def __init__(self, kind: str, original: BaseException):
        self.kind = kind
        self.original = original
        super().__init__(str(original))


class PersistenceError(OrderProcessingError):
    """Raised when a report file cannot be written."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        msg = f"Failed to write report to {path}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ConfigurationError(OrderProcessingError):
    """Raised when processing settings are invalid."""

    pass
