"""
Flask Application Factory - contract-validated demo API.

Every /api/users/* request passes through the users ContractPlug before its
view runs; /api/search uses the per-view @contract_guard decorator.
"""

import logging

from flask import Flask
from flask_cors import CORS


def create_app(config_overrides=None):
    app = Flask(__name__)
    if config_overrides:
        app.config.update(config_overrides)

    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
         allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
         expose_headers=["X-Request-ID"],
         supports_credentials=False,
         send_wildcard=True)

    # === CONTRACT MIDDLEWARE ===
    # Request ID first so failure envelopes carry it
    from action_contracts.middleware import setup_request_id_middleware, setup_error_handlers
    setup_request_id_middleware(app)
    setup_error_handlers(app)

    # Contracts are finalized on import; misconfiguration fails here, before serving
    from routes.users import users_bp
    from routes.search import search_bp
    app.register_blueprint(users_bp, url_prefix='/api')
    app.register_blueprint(search_bp, url_prefix='/api')

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    create_app().run(port=5000)
