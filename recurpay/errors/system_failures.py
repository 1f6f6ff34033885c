"""
System failure error classifications.

These exceptions represent failures of the storage collaborators or misuse
of the record lifecycle. They are not fixed by retrying the same input.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class StateTransitionError(SystemFailureError):
    """Lifecycle transition not allowed from the current status."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class PersistenceError(SystemFailureError):
    """A gateway write or read failed for a single record."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class GatewayUnavailableError(SystemFailureError):
    """The backing store cannot be reached at all."""

    def __init__(self, message: str, gateway: Optional[str] = None,
                 operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.gateway = gateway
        self.operation = operation


class RecordNotFoundError(SystemFailureError):
    """No recurring payment record exists under the given id."""

    def __init__(self, message: str, record_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.record_id = record_id


class ConfigurationError(SystemFailureError):
    """Scheduler configuration failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []
