"""
Infrastructure Monitoring Module

Structured logging with correlation IDs and masking of credentials.
"""

from .logging import (
    JSONFormatter,
    SensitiveDataConfig,
    SensitiveDataMasker,
    correlation_context,
    get_correlation_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "correlation_context",
    "get_correlation_id",
    "JSONFormatter",
    "SensitiveDataConfig",
    "SensitiveDataMasker",
]
