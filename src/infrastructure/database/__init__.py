"""
Database Infrastructure Module

SQLAlchemy engine and session management for the credential store.
"""

from .connection import DatabaseConnection, create_db_engine

__all__ = [
    "DatabaseConnection",
    "create_db_engine",
]
