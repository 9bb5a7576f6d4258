"""
Error envelope + request id middleware tests.
"""

from flask import Flask, jsonify

from action_contracts.middleware import (
    make_error_response,
    setup_error_handlers,
    setup_request_id_middleware,
)


def _build_test_app():
    app = Flask(__name__)
    setup_request_id_middleware(app)
    setup_error_handlers(app)

    @app.route("/api/ok", methods=["GET"])
    def ok():
        return jsonify({"status": "ok"})

    @app.route("/api/boom", methods=["GET"])
    def boom():
        raise ValueError("kaboom")

    @app.route("/api/bad", methods=["GET"])
    def bad():
        return make_error_response("VALIDATION_FAILED", "nope", details={"id": ["x"]})

    return app


def test_request_id_echoed():
    client = _build_test_app().test_client()

    response = client.get("/api/ok", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_request_id_generated():
    client = _build_test_app().test_client()

    response = client.get("/api/ok")

    assert len(response.headers["X-Request-ID"]) == 36


def test_not_found_envelope():
    client = _build_test_app().test_client()

    response = client.get("/api/missing", headers={"X-Request-ID": "rid"})

    assert response.status_code == 404
    assert response.get_json()["error"]["code"] == "NOT_FOUND"
    assert response.get_json()["error"]["requestId"] == "rid"


def test_unhandled_error_envelope():
    client = _build_test_app().test_client()

    response = client.get("/api/boom")

    assert response.status_code == 500
    assert response.get_json()["error"] == {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
        "requestId": response.headers["X-Request-ID"],
    }


def test_make_error_response_defaults_status_from_code():
    client = _build_test_app().test_client()

    response = client.get("/api/bad", headers={"X-Request-ID": "rid"})

    assert response.status_code == 400
    assert response.get_json()["error"] == {
        "code": "VALIDATION_FAILED",
        "message": "nope",
        "requestId": "rid",
        "details": {"id": ["x"]},
    }
