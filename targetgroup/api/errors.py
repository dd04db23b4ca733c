"""Target group provisioner REST API error handlers and custom exceptions."""

from typing import Any, Dict, Optional

from flask import Flask
from pydantic import ValidationError as PydanticValidationError

from targetgroup.services.state_store import StateStoreError
from targetgroup.utils.api_responses import error_response, validation_error_response


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Any] = None):
        """
        Initialize ValidationError.

        Args:
            message: Error message describing validation failure.
            details: Optional detailed information about validation errors.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(Exception):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        """
        Initialize NotFoundError.

        Args:
            resource: Name of the resource type (e.g., 'Provisioning request').
            identifier: Optional identifier that was not found.
        """
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found"
        if identifier:
            message += f": {identifier}"
        super().__init__(message)


def handle_validation_error(error: ValidationError) -> tuple[Dict[str, Any], int]:
    """
    Handle ValidationError exceptions.

    Args:
        error: ValidationError instance.

    Returns:
        Tuple of (response_dict, 422).
    """
    response, status = validation_error_response(error.details)
    response["error"] = error.message
    return response, status


def handle_pydantic_error(error: PydanticValidationError) -> tuple[Dict[str, Any], int]:
    """
    Handle request bodies rejected by a schema.

    Args:
        error: pydantic ValidationError instance.

    Returns:
        Tuple of (response_dict, 422).
    """
    return validation_error_response(error.errors(include_url=False, include_context=False))


def handle_not_found_error(error: NotFoundError) -> tuple[Dict[str, Any], int]:
    """
    Handle NotFoundError exceptions.

    Args:
        error: NotFoundError instance.

    Returns:
        Tuple of (response_dict, 404).
    """
    return error_response(
        error=str(error),
        status_code=404,
    )


def handle_state_store_error(error: StateStoreError) -> tuple[Dict[str, Any], int]:
    """
    Handle resume-state store outages.

    Args:
        error: StateStoreError instance.

    Returns:
        Tuple of (response_dict, 503).
    """
    return error_response(
        error="State store unavailable",
        details={"message": str(error)},
        status_code=503,
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
    """
    Handle 404 Not Found errors.

    Args:
        error: Exception instance.

    Returns:
        Tuple of (response_dict, 404).
    """
    return error_response(
        error="Not found",
        details={"message": "The requested resource was not found"},
        status_code=404,
    )


def handle_500_error(error: Exception) -> tuple[Dict[str, Any], int]:
    """
    Handle 500 Internal Server Error.

    Args:
        error: Exception instance.

    Returns:
        Tuple of (response_dict, 500).
    """
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
    # Custom exception handlers
    app.register_error_handler(ValidationError, lambda e: handle_validation_error(e))
    app.register_error_handler(PydanticValidationError, lambda e: handle_pydantic_error(e))
    app.register_error_handler(NotFoundError, lambda e: handle_not_found_error(e))
    app.register_error_handler(StateStoreError, lambda e: handle_state_store_error(e))

    # HTTP status code handlers
    app.register_error_handler(400, lambda e: handle_400_error(e))
    app.register_error_handler(404, lambda e: handle_404_error(e))
    app.register_error_handler(500, lambda e: handle_500_error(e))
