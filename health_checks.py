"""
Health Check & Monitoring Endpoints
Liveness, readiness (access configuration integrity) and basic metrics
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify
import logging

from space_access import Role, Space

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

# Track application start time
START_TIME = time.time()


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic process metrics

    Returns:
        Dictionary of metrics, empty if they cannot be read
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': process.memory_info().rss / 1024 / 1024,
            'memory_percent': process.memory_percent(),
            'threads': process.num_threads(),
        }
    except Exception as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    """Get application uptime"""
    uptime_seconds = time.time() - START_TIME

    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'uptime_minutes': round(uptime_seconds / 60, 2),
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_access_configuration(app) -> Dict[str, Any]:
    """
    Check that the loaded access configuration is usable

    Args:
        app: Flask application instance

    Returns:
        Dictionary of checks with an overall 'healthy' flag
    """
    controller = app.space_controller
    navigation = app.navigation

    roles_without_spaces = [role.value for role in Role if not controller.permitted_spaces(role)]
    empty_spaces = [space.value for space in navigation.spaces_without_entries()]
    default_reachable = any(
        controller.default_space in controller.permitted_spaces(role) for role in Role
    )

    return {
        'roles': len(controller.role_space_map),
        'spaces': len(Space),
        'navigation_entries': len(navigation.entries()),
        'roles_without_spaces': roles_without_spaces,
        'spaces_without_navigation': empty_spaces,
        'default_space': controller.default_space.value,
        'default_space_reachable': default_reachable,
        'healthy': not roles_without_spaces and not empty_spaces and default_reachable,
    }


def check_user_store(app) -> Dict[str, bool]:
    """Check that the user store file (or its folder) is writable"""
    path = app.config.get('USERS_FILE') or 'data/users.json'
    exists = os.path.exists(path)
    directory = os.path.dirname(os.path.abspath(path))
    writable = os.access(path if exists else directory, os.W_OK)

    return {
        'exists': exists,
        'writable': writable,
        'healthy': writable
    }


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint
    Returns 200 if application is running
    """
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': 'agency-portal'
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe endpoint
    Returns 200 if the access configuration and user store are usable
    """
    from flask import current_app

    try:
        access = check_access_configuration(current_app)
        user_store = check_user_store(current_app)
        is_ready = access['healthy'] and user_store['healthy']

        response = {
            'status': 'ready' if is_ready else 'not_ready',
            'timestamp': datetime.utcnow().isoformat(),
            'checks': {
                'access_configuration': access,
                'user_store': user_store,
            }
        }

        return jsonify(response), 200 if is_ready else 503

    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return jsonify({
            'status': 'error',
            'error': str(e),
            'timestamp': datetime.utcnow().isoformat()
        }), 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Basic metrics endpoint
    Returns process metrics and application statistics
    """
    from flask import current_app

    return jsonify({
        'timestamp': datetime.utcnow().isoformat(),
        'service': 'agency-portal',
        'version': '1.0.0',
        'environment': os.environ.get('FLASK_ENV', 'production'),
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'access_configuration': check_access_configuration(current_app),
        'python_version': sys.version.split()[0]
    }), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    """Simple ping endpoint"""
    return 'pong', 200


def register_health_checks(app):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
    """
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered")
