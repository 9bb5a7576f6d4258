"""
User API Routes - demo controller protected by a ContractPlug.

Endpoints:
- GET  /api/users           - index (declared without params, never validated)
- GET  /api/users/<id>      - show (id must be a string of at least 5 chars)
- POST /api/users           - create (on_fail builds a 422 response)
- GET  /api/users/health    - health (no contract at all)
"""

from flask import Blueprint, g, jsonify

from action_contracts import ContractPlug, build_registry

users_bp = Blueprint('users', __name__)


def on_create_fail(request_context, action_name, errors):
    """Custom failure response for create."""
    return jsonify({"action": action_name, "errors": errors}), 422


def user_contracts(contracts):
    contracts.declare("show", params={"id": {"type": "string", "length": {"min": 5}}})
    contracts.declare(
        "create",
        params=[
            ("name", {"type": "string", "length": {"min": 2, "max": 64}}),
            ("email", [("type", "string"), ("format", r"[^@\s]+@[^@\s]+")]),
            ("age", {"type": "integer", "numericality": {"gte": 18}, "required": False}),
            ("role", {"type": "string", "in": ["member", "admin"], "default": "member"}),
        ],
        on_fail=on_create_fail,
    )
    contracts.declare("index")


USER_CONTRACTS = build_registry("users", user_contracts)

ContractPlug(USER_CONTRACTS).init_app(users_bp)


@users_bp.route("/users", methods=["GET"])
def index():
    return jsonify({"data": []})


@users_bp.route("/users/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


@users_bp.route("/users/<id>", methods=["GET"])
def show(id):
    return jsonify({"data": {"id": id}})


@users_bp.route("/users", methods=["POST"])
def create():
    return jsonify({"data": g.validated_params}), 201
