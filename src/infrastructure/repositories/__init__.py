"""
Repository Infrastructure Module

This module provides the SQLAlchemy implementation of the repository interfaces.
Implements the infrastructure layer for data access using the Repository pattern.
"""

from .user_repository import SQLAlchemyUserRepository

__all__ = [
    "SQLAlchemyUserRepository",
]
