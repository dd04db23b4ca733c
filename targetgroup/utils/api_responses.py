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


def accepted_response(
    data: Any,
    message: str = "Accepted",
) -> Tuple[Dict[str, Any], int]:
    """
    Generate a 202 Accepted API response for work continuing in the background.

    Args:
        data: Response data payload (required).
        message: Success message (default: "Accepted").

    Returns:
        Tuple of (response_dict, 202).
    """
    return success_response(data=data, message=message, status_code=202)


def validation_error_response(
    errors: Any,
) -> Tuple[Dict[str, Any], int]:
    """
    Generate a 422 Unprocessable Entity response for validation errors.

    Args:
        errors: Validation errors (pydantic error list or field -> message dict).

    Returns:
        Tuple of (response_dict, 422).
    """
    response = {
        "success": False,
        "timestamp": _timestamp(),
        "status_code": 422,
        "error": "Validation failed",
        "validation_errors": errors,
    }

    return response, 422
