"""
Agency Portal - Application Package

This package contains the HTTP layer:
- api/: route handlers (Flask Blueprints)

The app factory and core Flask setup remain in app_init.py at the project root.
"""

import logging

from app.api.auth_routes import auth_bp
from app.api.space_routes import space_bp

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(auth_bp)
    app.register_blueprint(space_bp)
    logger.info("Blueprints registered: auth_bp, space_bp")


__all__ = ['register_blueprints', 'auth_bp', 'space_bp']
