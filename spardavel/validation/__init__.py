"""Stored-state validation package."""

from spardavel.validation.validator import (
    LoadRecovery,
    StateValidationError,
    StateValidationResult,
    StateValidator,
    ValidationIssue,
)

__all__ = [
    "LoadRecovery",
    "StateValidationError",
    "StateValidationResult",
    "StateValidator",
    "ValidationIssue",
]
