"""
Error envelope middleware - Standardize all error responses.

Provides consistent error response format:
{
    "error": {
        "code": "VALIDATION_FAILED",
        "message": "Request params failed validation",
        "requestId": "uuid",
        "details": {"show": {"validation": {"id": ["..."]}}}
    }
}
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .request_id import REQUEST_ID_HEADER, get_request_id


logger = logging.getLogger('action_contracts.middleware.error')


# Default status per error code when the caller does not pass one
ERROR_CODES = {
    "VALIDATION_FAILED": 400,
    "INTERNAL_ERROR": 500,
}


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - HTTP exceptions (400, 404, 500, etc.)
    - Unhandled Python exceptions, including validation engine failures
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": get_request_id(),
                "error_type": type(error).__name__,
            }
        )
        return make_error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)


def make_error_response(
    code: str,
    message: str,
    status_code: Optional[int] = None,
    details: Optional[dict] = None,
):
    """
    Create a standardized error response.

    Args:
        code: Error code (e.g., "VALIDATION_FAILED")
        message: Human-readable error message
        status_code: HTTP status code (defaults based on error code)
        details: Optional additional details dict

    Returns:
        Tuple of (response, status_code)
    """
    request_id = get_request_id()

    if status_code is None:
        status_code = ERROR_CODES.get(code, 500)

    error = {
        "error": {
            "code": code,
            "message": message,
            "requestId": request_id,
        }
    }
    if details:
        error["error"]["details"] = details

    response = jsonify(error)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id

    return response, status_code
