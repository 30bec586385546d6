"""Standard API response helpers for consistent JSON responses."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(
    data: Optional[Any] = None,
    message: Optional[str] = None,
    status_code: int = 200,
) -> Tuple[Dict[str, Any], int]:
    """
    Generate a successful API response.

    Args:
        data: Optional response data payload.
        message: Optional success message.
        status_code: HTTP status code (default: 200).

    Returns:
        Tuple of (response_dict, status_code).
    """
    response = {
        "success": True,
        "timestamp": _timestamp(),
        "status_code": status_code,
    }

    if message:
        response["message"] = message

    if data is not None:
        response["data"] = data

    return response, status_code


def error_response(
    error: str,
    details: Optional[Any] = None,
    status_code: int = 400,
) -> Tuple[Dict[str, Any], int]:
    """
    Generate an error API response.

    Args:
        error: Error message describing what went wrong.
        details: Optional detailed error information.
        status_code: HTTP status code (default: 400).

    Returns:
        Tuple of (response_dict, status_code).
    """
    response = {
        "success": False,
        "timestamp": _timestamp(),
        "status_code": status_code,
        "error": error,
    }

    if details is not None:
        response["details"] = details

    return response, status_code


def created_response(
    data: Any,
    message: str = "Created",
) -> Tuple[Dict[str, Any], int]:
    """
    Generate a 201 Created API response.

    Args:
        data: Response data payload (required).
        message: Success message (default: "Created").

    Returns:
        Tuple of (response_dict, 201).
    """
    return success_response(data=data, message=message, status_code=201)


def validation_error_response(
    message: str,
    errors: Dict[str, Any],
) -> Tuple[Dict[str, Any], int]:
    """
    Generate a 422 Unprocessable Entity response for validation errors.

    Args:
        message: Summary of the validation failure.
        errors: Dictionary of validation errors (field -> error message).

    Returns:
        Tuple of (response_dict, 422).
    """
    response = {
        "success": False,
        "timestamp": _timestamp(),
        "status_code": 422,
        "error": message,
        "validation_errors": errors,
    }

    return response, 422
