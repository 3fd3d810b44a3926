"""Domain entities with business logic."""

from .account import AccountStatus, ActivityState, VerificationState

__all__ = ["AccountStatus", "ActivityState", "VerificationState"]
