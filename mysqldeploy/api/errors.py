"""mysqldeploy REST API error handlers."""

import logging
from typing import Any, Dict

from flask import Flask

from mysqldeploy.services.provisioning.errors import (
    DependencyOrderingError,
    PartialSubmissionError,
    ProviderRejected,
    ProvisionerException,
    TransientFailure,
    ValidationError,
)
from mysqldeploy.utils.api_responses import error_response, validation_error_response

logger = logging.getLogger(__name__)


def handle_validation_error(error: ValidationError) -> tuple[Dict[str, Any], int]:
    """
    Handle ValidationError exceptions.

    Args:
        error: ValidationError instance.

    Returns:
        Tuple of (response_dict, 422).
    """
    return validation_error_response(error.message, error.details)


def handle_dependency_ordering_error(error: DependencyOrderingError) -> tuple[Dict[str, Any], int]:
    return error_response(error=error.message, status_code=409)


def handle_partial_submission_error(error: PartialSubmissionError) -> tuple[Dict[str, Any], int]:
    """
    Handle PartialSubmissionError exceptions.

    The report lists which requests succeeded, failed and were skipped;
    nothing is rolled back.

    Args:
        error: PartialSubmissionError instance.

    Returns:
        Tuple of (response_dict, 502).
    """
    return error_response(
        error=error.message,
        details=error.report.summary(),
        status_code=502,
    )


def handle_provider_rejected(error: ProviderRejected) -> tuple[Dict[str, Any], int]:
    details = {"resource_id": error.resource_id}
    if error.status_code is not None:
        details["provider_status_code"] = error.status_code
    return error_response(error=error.message, details=details, status_code=502)


def handle_transient_failure(error: TransientFailure) -> tuple[Dict[str, Any], int]:
    return error_response(
        error=error.message,
        details={"resource_id": error.resource_id, "retryable": True},
        status_code=503,
    )


def handle_provisioner_exception(error: ProvisionerException) -> tuple[Dict[str, Any], int]:
    logger.error(f"Provisioner error: {error}")
    return error_response(
        error=error.message,
        details={"provider": error.provider},
        status_code=500,
    )


def handle_400_error(error: Exception) -> tuple[Dict[str, Any], int]:
    """
    Handle 400 Bad Request errors.

    Args:
        error: Exception instance.

    Returns:
        Tuple of (response_dict, 400).
    """
    return error_response(
        error="Bad request",
        details={"message": str(error)},
        status_code=400,
    )


def handle_404_error(error: Exception) -> tuple[Dict[str, Any], int]:
    return error_response(
        error="Not found",
        details={"message": "The requested resource was not found"},
        status_code=404,
    )


def handle_500_error(error: Exception) -> tuple[Dict[str, Any], int]:
    return error_response(
        error="Internal server error",
        details={"message": "An unexpected error occurred"},
        status_code=500,
    )


def register_error_handlers(app: Flask) -> None:
    """
    Register all error handlers with the Flask application.

    Args:
        app: Flask application instance.
    """
    # Provisioner exception handlers (most specific first)
    app.register_error_handler(ValidationError, handle_validation_error)
    app.register_error_handler(DependencyOrderingError, handle_dependency_ordering_error)
    app.register_error_handler(PartialSubmissionError, handle_partial_submission_error)
    app.register_error_handler(ProviderRejected, handle_provider_rejected)
    app.register_error_handler(TransientFailure, handle_transient_failure)
    app.register_error_handler(ProvisionerException, handle_provisioner_exception)

    # HTTP status code handlers
    app.register_error_handler(400, handle_400_error)
    app.register_error_handler(404, handle_404_error)
    app.register_error_handler(500, handle_500_error)
