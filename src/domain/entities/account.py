"""
Account Status - lifecycle of a user account

An account moves along two independent axes: whether its e-mail address has
been verified, and whether it is allowed to sign in. The value object below
makes the four combinations explicit and only allows the legal moves.
"""

from __future__ import annotations

# Standard library imports
from dataclasses import dataclass, replace
from enum import Enum

from ..exceptions import InvalidStatusTransition


class VerificationState(Enum):
    """E-mail verification state"""

    UNVERIFIED = "unverified"
    VERIFIED = "verified"


class ActivityState(Enum):
    """Sign-in eligibility"""

    ACTIVE = "active"
    DEACTIVATED = "deactivated"


@dataclass(frozen=True)
class AccountStatus:
    """
    Immutable account status.

    Transitions return a new instance and raise InvalidStatusTransition when
    the move is not permitted from the current state.
    """

    verification: VerificationState = VerificationState.UNVERIFIED
    activity: ActivityState = ActivityState.ACTIVE

    @classmethod
    def registered(cls) -> AccountStatus:
        """Status of a freshly registered account."""
        return cls(VerificationState.UNVERIFIED, ActivityState.ACTIVE)

    @classmethod
    def from_flags(cls, is_active: bool, is_verified: bool) -> AccountStatus:
        return cls(
            verification=VerificationState.VERIFIED if is_verified else VerificationState.UNVERIFIED,
            activity=ActivityState.ACTIVE if is_active else ActivityState.DEACTIVATED,
        )

    def as_flags(self) -> tuple[bool, bool]:
        """Return (is_active, is_verified)."""
        return self.is_active, self.is_verified

    @property
    def is_active(self) -> bool:
        return self.activity is ActivityState.ACTIVE

    @property
    def is_verified(self) -> bool:
        return self.verification is VerificationState.VERIFIED

    @property
    def can_authenticate(self) -> bool:
        """Only active accounts may obtain tokens."""
        return self.is_active

    def verify(self) -> AccountStatus:
        if self.is_verified:
            raise InvalidStatusTransition("verify", str(self))
        return replace(self, verification=VerificationState.VERIFIED)

    def deactivate(self) -> AccountStatus:
        if not self.is_active:
            raise InvalidStatusTransition("deactivate", str(self))
        return replace(self, activity=ActivityState.DEACTIVATED)

    def reactivate(self) -> AccountStatus:
        if self.is_active:
            raise InvalidStatusTransition("reactivate", str(self))
        return replace(self, activity=ActivityState.ACTIVE)

    def __str__(self) -> str:
        return f"{self.verification.value}/{self.activity.value}"
