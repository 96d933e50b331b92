"""
Shared error handling for the state permission layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class AccessLayerException(Exception):
    """Base exception for the permission layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(AccessLayerException):
    """Malformed permission policy, raised while building a rule set."""

    def __init__(self, message: str = "Invalid permission configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class AuthorizationError(AccessLayerException):
    """Authorization-related errors."""

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None,
                 code: str = "AUTHORIZATION_ERROR"):
        super().__init__(code, message, details)


class AuthorizationDenied(AuthorizationError):
    """Access was denied; ``privilege`` names the privilege that caused it."""

    def __init__(self, privilege: Optional[str], message: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.privilege = privilege
        details = dict(details or {})
        details.setdefault("privilege", privilege)
        super().__init__(
            message or f"Access denied by privilege '{privilege}'",
            details,
            code="AUTHORIZATION_DENIED"
        )


class PrivilegeCheckError(AccessLayerException):
    """Base for failures of a single privilege check."""

    def __init__(self, code: str, privilege: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.privilege = privilege
        details = dict(details or {})
        details.setdefault("privilege", privilege)
        super().__init__(code, message, details)


class UnregisteredPrivilegeError(PrivilegeCheckError):
    """Privilege is defined in neither the role nor the permission store."""

    def __init__(self, privilege: str):
        super().__init__(
            "UNREGISTERED_PRIVILEGE",
            privilege,
            f"Permission or role '{privilege}' was not defined"
        )


class ValidationRejection(PrivilegeCheckError):
    """A store validator rejected the privilege."""

    def __init__(self, privilege: str, reason: Optional[str] = None):
        message = f"Privilege '{privilege}' was rejected"
        if reason:
            message = f"{message}: {reason}"
        super().__init__("VALIDATION_REJECTED", privilege, message)


class RedirectResolutionError(AccessLayerException):
    """No usable redirect target could be produced."""

    def __init__(self, message: str = "Redirect could not be resolved", privilege: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.privilege = privilege
        details = dict(details or {})
        details.setdefault("privilege", privilege)
        super().__init__("REDIRECT_RESOLUTION_ERROR", message, details)
