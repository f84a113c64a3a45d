"""Custom exception classes for infraplan."""

from typing import List, Optional


class InfraPlanError(Exception):
    """Base exception for all infraplan errors."""
    pass


class PlanningError(InfraPlanError):
    """Base for errors raised before any resource is touched."""
    pass


class DeclarationLoadError(PlanningError):
    """Raised when a declarations file cannot be loaded or is malformed."""
    pass


class UnknownTypeError(PlanningError):
    """Raised when a resource type has no registered schema."""

    def __init__(self, resource_type: str, address: Optional[str] = None):
        self.resource_type = resource_type
        self.address = address
        where = f" (declared by {address})" if address else ""
        super().__init__(f"Unknown resource type '{resource_type}'{where}")


class UnresolvedReferenceError(PlanningError):
    """Raised when a reference names a missing resource or output."""

    def __init__(self, consumer: str, token: str, reason: str):
        self.consumer = consumer
        self.token = token
        self.reason = reason
        super().__init__(f"Unresolved reference '{token}' in {consumer}: {reason}")


class CyclicReferenceError(PlanningError):
    """Raised when references form a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")


class SchemaValidationError(PlanningError):
    """Raised when a desired value violates its schema."""

    def __init__(self, address: str, field: str, rule: str, message: str):
        self.address = address
        self.field = field
        self.rule = rule
        self.message = message
        super().__init__(f"{address}: field '{field}' failed rule '{rule}': {message}")


class GraphConstructionError(InfraPlanError):
    """Raised when dependency graph construction fails."""
    pass


class StalePlanError(InfraPlanError):
    """Raised when a saved plan no longer matches the current state."""
    pass


class StateError(InfraPlanError):
    """Raised when the state file cannot be read or written."""
    pass


class ConfigError(InfraPlanError):
    """Raised when configuration is invalid or missing."""
    pass


class ProviderError(InfraPlanError):
    """
    Raised by providers when a resource operation fails.

    Transient errors are expected to succeed on retry; the scheduler retries
    them with backoff. Permanent errors fail the node immediately.
    """

    def __init__(self, message: str, transient: bool = False, status_code: Optional[int] = None):
        self.message = message
        self.transient = transient
        self.status_code = status_code
        super().__init__(message)


class ProviderThrottlingError(ProviderError):
    """Provider rate limit responses (transient)."""

    def __init__(self, message: str, status_code: Optional[int] = 429):
        super().__init__(message, transient=True, status_code=status_code)


class ProviderTimeoutError(ProviderError):
    """Provider call exceeded its timeout (transient)."""

    def __init__(self, message: str):
        super().__init__(message, transient=True)


class PlanFileError(InfraPlanError):
    """Raised when a saved plan file cannot be read or written."""
    pass


class ExecutionCancelledError(InfraPlanError):
    """Raised inside a worker when apply is cancelled during a retry wait."""
    pass
