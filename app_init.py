"""
Application Initialization Module
Initializes the Flask app with all infrastructure components
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from navigation import load_navigation
from security import setup_security
from health_checks import register_health_checks
from space_access import DEFAULT_ROLE_SPACE_MAP, RoleSpaceMap, SpaceAccessController
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None, **overrides):
    """
    Application factory that creates and configures the Flask app

    Args:
        config_class: Configuration class, defaults to the one selected by FLASK_ENV
        **overrides: Individual config values applied after the class

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    app.config.from_object(config_class or get_config())
    app.config.update(overrides)

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("🚀 Initializing Agency Portal")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    setup_security(app, app.config)

    # Access configuration is loaded once and shared read-only
    app.space_controller = initialize_space_controller(app)
    app.navigation = load_navigation(app.config.get('NAVIGATION_FILE'))

    from app import register_blueprints
    register_blueprints(app)

    register_health_checks(app)

    logger.info("✅ Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_space_controller(app):
    """
    Build the space access controller from configuration

    Args:
        app: Flask application instance

    Returns:
        SpaceAccessController instance
    """
    map_file = app.config.get('ROLE_SPACE_MAP_FILE')
    role_space_map = RoleSpaceMap.from_json_file(map_file) if map_file else DEFAULT_ROLE_SPACE_MAP

    controller = SpaceAccessController(role_space_map, app.config.get('DEFAULT_SPACE', 'internal'))

    logger.info(f"Space access: default={controller.default_space.value} "
                f"map={role_space_map.to_dict()}")
    return controller
