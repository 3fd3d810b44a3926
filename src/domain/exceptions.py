"""
Domain-level exceptions for the user service.

This module defines exceptions that are specific to domain logic and business rules.
These exceptions are raised within domain entities and services.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class InvalidStatusTransition(DomainException):
    """
    Raised when an account status change is not allowed from the current state.

    For example verifying an already verified account, or deactivating an
    account that is already deactivated.
    """

    def __init__(self, transition: str, current_state: str) -> None:
        super().__init__(
            f"Cannot {transition} account in state {current_state}",
            details={"transition": transition, "current_state": current_state},
        )
        self.transition = transition
        self.current_state = current_state
