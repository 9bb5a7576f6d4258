"""
Root pytest configuration for backend tests.

Provides:
- backend/ on sys.path (for `from app import create_app`, `routes.*`)
- Shared fixtures (app, client)
"""

import sys
from pathlib import Path

backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest


@pytest.fixture
def app():
    """Create test Flask application."""
    from app import create_app

    app = create_app()
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
