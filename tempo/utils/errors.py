"""Custom exceptions for date-time interpretation."""

from __future__ import annotations

from typing import Any


class TempoError(ValueError):
    """Base class for inputs the engine refuses to interpret."""

    def __init__(
        self,
        message: str,
        *,
        value: Any = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.value = value
        self.detail = detail or {}


class UnrecognizedInputError(TempoError):
    """Raised when no layout matched and the fallback parser also failed."""


class AliasError(TempoError):
    """Raised when an event/period reference has no usable definition."""


class ModifierConflictError(TempoError):
    """Raised when a modifier and a relative suffix target the same token."""


class AmbiguousNumeralError(TempoError):
    """Raised when a number has too few digits to classify as date or epoch."""
