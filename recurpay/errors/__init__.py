"""
Error classification for the recurring-payment engine.

This module provides a structured exception hierarchy separating bad data
(recoverable, handled per record) from storage and lifecycle failures.
"""

from .data_quality import (
    DataQualityError,
    MalformedDateError,
    InvalidRuleError,
    InvalidRecordError,
)
from .system_failures import (
    SystemFailureError,
    StateTransitionError,
    PersistenceError,
    GatewayUnavailableError,
    RecordNotFoundError,
    ConfigurationError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MalformedDateError",
    "InvalidRuleError",
    "InvalidRecordError",
    # System Failures
    "SystemFailureError",
    "StateTransitionError",
    "PersistenceError",
    "GatewayUnavailableError",
    "RecordNotFoundError",
    "ConfigurationError",
]
