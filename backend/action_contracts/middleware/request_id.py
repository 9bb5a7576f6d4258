"""
Request ID middleware - correlate contract failures with logs.

Reads X-Request-ID from the incoming request (or generates one), stores it
on g.request_id and echoes it on every response.
"""

import uuid
from flask import Flask, request, g


REQUEST_ID_HEADER = 'X-Request-ID'


def setup_request_id_middleware(app: Flask) -> None:
    """
    Set up request ID middleware on Flask app.

    Must be registered before any ContractPlug so failure envelopes
    carry the request id.
    """

    @app.before_request
    def inject_request_id():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

    @app.after_request
    def add_request_id_header(response):
        if hasattr(g, 'request_id'):
            response.headers[REQUEST_ID_HEADER] = g.request_id
        return response


def get_request_id():
    """Current request ID, or None outside a request handled by the middleware."""
    return getattr(g, 'request_id', None)
