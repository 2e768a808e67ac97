"""
Security Middleware for the portal API
Session secret, CORS, response headers, JSON errors and request logging
"""
import os
import secrets
from typing import Dict, Any
from flask import Flask, request, jsonify, Response
from flask_cors import CORS
import logging

from space_access import InvalidRoleError
from validators import ValidationError

logger = logging.getLogger(__name__)

MIN_SECRET_KEY_LENGTH = 32
WEAK_SECRET_FRAGMENTS = ['dev', 'secret', 'password', '12345', 'changeme']

# Status -> (error, message) for the JSON error body
HTTP_ERRORS = {
    400: ('Bad Request', 'The request could not be understood or was missing required parameters'),
    401: ('Unauthorized', 'Authentication required'),
    403: ('Forbidden', 'You do not have permission to access this resource'),
    404: ('Not Found', 'The requested resource was not found'),
    405: ('Method Not Allowed', 'The method is not allowed for the requested URL'),
    500: ('Internal Server Error', 'An error occurred while processing your request'),
}

# Health endpoints polled by load balancers
QUIET_PATHS = ['/api/health', '/api/ping']


class SecurityConfig:
    """Session secret key checks"""

    @staticmethod
    def generate_secret_key() -> str:
        return secrets.token_hex(32)

    @staticmethod
    def validate_secret_key(secret_key: str) -> bool:
        """True when the key is long enough and not an obvious placeholder"""
        if not secret_key:
            return False

        if len(secret_key) < MIN_SECRET_KEY_LENGTH:
            logger.warning(f"Secret key is too short (minimum {MIN_SECRET_KEY_LENGTH} characters)")
            return False

        if any(weak in secret_key.lower() for weak in WEAK_SECRET_FRAGMENTS):
            logger.warning("Secret key appears to be weak or default")
            return False

        return True

    @staticmethod
    def ensure_secret_key(config: Dict[str, Any]) -> str:
        """
        Secret key used to sign session cookies

        Testing keeps the configured key as-is. Elsewhere a missing or weak
        key is replaced by a random one, which logs every session out on
        restart.
        """
        secret_key = config.get('SECRET_KEY')

        if config.get('TESTING') and secret_key:
            return secret_key

        if not SecurityConfig.validate_secret_key(secret_key):
            if os.environ.get('FLASK_ENV') == 'production':
                logger.error("No secure SECRET_KEY in production! Sessions will not survive a restart.")

            secret_key = SecurityConfig.generate_secret_key()
            logger.warning(f"Generated new secret key (length: {len(secret_key)})")

        return secret_key


def error_response(status: int, message: str = None, **extra):
    """JSON error body and status for an HTTP error code"""
    error, default_message = HTTP_ERRORS[status]
    body = {'error': error, 'message': message or default_message}
    body.update(extra)
    return jsonify(body), status


def setup_security_headers(app: Flask):
    """Add API response headers (no framing, no sniffing, nothing to load)"""

    @app.after_request
    def add_security_headers(response: Response) -> Response:
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"

        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response


def setup_cors(app: Flask, config: Dict[str, Any]):
    """Allow the portal front-end to call the API with its session cookie"""
    cors_origins = config.get('CORS_ORIGINS', ['*'])

    if not app.debug and '*' in cors_origins:
        logger.warning("⚠️  Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        origins=cors_origins,
        methods=config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']),
        allow_headers=config.get('CORS_ALLOW_HEADERS', ['Content-Type']),
        supports_credentials=True,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def setup_error_handlers(app: Flask):
    """
    Register JSON error handlers

    ValidationError becomes a 400 naming the offending field. InvalidRoleError
    becomes a 403, since a role outside the fixed set means the session or the
    user store is corrupted. A 500 never carries exception details.
    """

    @app.errorhandler(ValidationError)
    def validation_error(error):
        extra = {'field': error.field} if error.field else {}
        return error_response(400, error.message, **extra)

    @app.errorhandler(InvalidRoleError)
    def invalid_role(error):
        logger.error(f"Invalid role in request {request.method} {request.path}: {error.role!r}")
        return error_response(403, 'Your account role is not recognised. Please sign in again.')

    def register(status):
        app.register_error_handler(status, lambda error: error_response(status))

    for status in [400, 401, 403, 404, 405]:
        register(status)

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return error_response(500)


def setup_request_logging(app: Flask):
    """Log one line per request and per response, except for health polling"""

    @app.before_request
    def log_request():
        if request.path not in QUIET_PATHS:
            logger.info(f"Request: {request.method} {request.path} from {request.remote_addr}")

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path not in QUIET_PATHS:
            logger.info(f"Response: {request.method} {request.path} status={response.status_code}")
        return response


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    app.secret_key = SecurityConfig.ensure_secret_key(config)

    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    logger.info("✅ Security configuration complete")
