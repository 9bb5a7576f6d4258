"""
Search API Routes - per-view contract enforcement with @contract_guard.

Endpoint:
- GET /api/search?q=...&limit=...
"""

from flask import Blueprint, g, jsonify

from action_contracts import build_registry, contract_guard

search_bp = Blueprint('search', __name__)


def _to_int(value):
    return int(value)


def search_contracts(contracts):
    contracts.declare(
        "search",
        params={
            "q": {"type": "string", "length": {"min": 2}},
            "limit": {"type": "integer", "coerce_with": _to_int, "numericality": {"gt": 0, "lte": 100}, "default": 20},
        },
    )


SEARCH_CONTRACTS = build_registry("search", search_contracts)


@search_bp.route("/search", methods=["GET"])
@contract_guard(SEARCH_CONTRACTS)
def search():
    return jsonify({"data": [], "meta": {"query": g.validated_params}})
