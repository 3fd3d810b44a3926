"""
Authentication service components.

Registration, authentication, password handling and address management,
each in a focused component, orchestrated by UserService.
"""

from .address_service import AddressService
from .authentication import AuthenticationService
from .password_service import PasswordHasher, PasswordService, PasswordValidator
from .registration import RegistrationService
from .user_service import UserService

__all__ = [
    "PasswordHasher",
    "PasswordValidator",
    "PasswordService",
    "RegistrationService",
    "AuthenticationService",
    "AddressService",
    "UserService",
]
