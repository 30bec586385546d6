"""
Exception hierarchy for the provisioning services.

Every error raised while validating, composing or submitting a deployment
derives from ProvisionerException so callers can catch one type.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .executor import SubmissionReport


class ProvisionerException(Exception):
    """
    Base exception for provisioner errors.

    Attributes:
        message: Error message
        provider: Provider type where error occurred
        resource_id: Resource ID if applicable
        original_error: Original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.provider = provider
        self.resource_id = resource_id
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"Provider: {self.provider}")
        if self.resource_id:
            parts.append(f"Resource: {self.resource_id}")
        if self.original_error:
            parts.append(f"Original error: {str(self.original_error)}")
        return " | ".join(parts)


class ValidationError(ProvisionerException):
    """
    Raised when the configuration is malformed or inconsistent.

    Attributes:
        details: Mapping of field location to the reason it was rejected
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class DependencyOrderingError(ProvisionerException):
    """Raised when a request family would be submitted before its dependencies."""


class ProviderRejected(ProvisionerException):
    """
    Raised when the control plane rejects a request.

    Attributes:
        status_code: HTTP status returned by the control plane, if any
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message, provider, resource_id, original_error)
        self.status_code = status_code


class TransientFailure(ProvisionerException):
    """Raised on timeouts, throttling and connection failures. Eligible for retry."""


class PartialSubmissionError(ProvisionerException):
    """
    Raised when some requests of a plan failed.

    There is no rollback; the attached report names every request that
    succeeded, failed or was skipped.

    Attributes:
        report: SubmissionReport of the run
    """

    def __init__(self, message: str, report: "SubmissionReport", provider: Optional[str] = None):
        super().__init__(message, provider=provider)
        self.report = report
