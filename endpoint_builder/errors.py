"""
Typed errors raised while building API Gateway endpoints.

Every error carries the endpoint identity (path, method, region) and the
pipeline stage that failed, so callers can correlate partially applied
remote state with the failure.
"""

from typing import Any, Dict, Optional


class EndpointBuilderError(Exception):
    """Base class for all endpoint build failures."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.path: Optional[str] = None
        self.method: Optional[str] = None
        self.region: Optional[str] = None

    def bind(self, stage: Optional[str] = None, path: Optional[str] = None,
             method: Optional[str] = None, region: Optional[str] = None) -> 'EndpointBuilderError':
        """Fill in endpoint context that is not already set."""
        self.stage = self.stage or stage
        self.path = self.path or path
        self.method = self.method or method
        self.region = self.region or region
        return self

    def __str__(self) -> str:
        where = [part for part in (self.method, self.path, self.region) if part]
        prefix = f"[{self.stage}] " if self.stage else ""
        if where:
            return f"{prefix}{' '.join(where)}: {self.message}"
        return f"{prefix}{self.message}"


class ValidationError(EndpointBuilderError):
    """A required endpoint field is missing or malformed."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(
            message or f'Endpoint does not have a "{field}" property', stage='normalize')
        self.field = field


class ProvisionError(EndpointBuilderError):
    """A remote create/update/delete call failed."""

    def __init__(self, message: str, stage: Optional[str] = None,
                 code: Optional[str] = None, operation: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, stage=stage)
        self.code = code
        self.operation = operation
        self.details = details or {}


class CallTimeout(ProvisionError):
    """A remote call did not answer within the configured timeout."""

    def __init__(self, operation: str, stage: Optional[str] = None):
        super().__init__(f"{operation} timed out", stage=stage,
                         code='Timeout', operation=operation)


class PermissionReconcileError(EndpointBuilderError):
    """Removing a stale invoke permission failed.

    Recorded as a warning on the build result, never raised out of a build.
    """

    def __init__(self, statement_id: str, message: str):
        super().__init__(message, stage='reconcile_permission')
        self.statement_id = statement_id


class NotFound(EndpointBuilderError):
    """The remote object does not exist. Used to pick create over replace."""

    def __init__(self, message: str, stage: Optional[str] = None,
                 operation: Optional[str] = None):
        super().__init__(message, stage=stage)
        self.operation = operation
