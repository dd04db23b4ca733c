"""Utility modules for the target group provisioner."""

from targetgroup.utils.api_responses import (
    accepted_response,
    error_response,
    success_response,
    validation_error_response,
)
from targetgroup.utils.async_utils import run_in_executor, run_sync

__all__ = [
    "success_response",
    "error_response",
    "accepted_response",
    "validation_error_response",
    "run_in_executor",
    "run_sync",
]
