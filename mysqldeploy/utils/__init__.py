"""Utility modules for mysqldeploy."""

from mysqldeploy.utils.api_responses import (
    created_response,
    error_response,
    success_response,
    validation_error_response,
)
from mysqldeploy.utils.async_utils import (
    async_retry,
    gather_with_limit,
    run_in_executor,
    timeout_wrapper,
)

__all__ = [
    "success_response",
    "error_response",
    "created_response",
    "validation_error_response",
    "async_retry",
    "gather_with_limit",
    "run_in_executor",
    "timeout_wrapper",
]
