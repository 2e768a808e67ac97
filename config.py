"""
Centralized Configuration for the Agency Portal access service
Manages environment-specific settings, secrets, and access configuration.
"""
import os
from datetime import timedelta


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1MB, JSON bodies only

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Storage
    DATA_FOLDER = os.environ.get('DATA_FOLDER', 'data')
    USERS_FILE = os.environ.get('USERS_FILE', os.path.join(DATA_FOLDER, 'users.json'))

    # Default admin seeded into an empty user store
    DEFAULT_ADMIN_EMAIL = os.environ.get('DEFAULT_ADMIN_EMAIL', 'admin@example.com')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'changeme')

    # Space access
    DEFAULT_SPACE = os.environ.get('DEFAULT_SPACE', 'internal')
    ROLE_SPACE_MAP_FILE = os.environ.get('ROLE_SPACE_MAP_FILE')  # None = built-in table
    NAVIGATION_FILE = os.environ.get('NAVIGATION_FILE')  # None = built-in sidebar

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')
    LOG_TO_FILE = True

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://portal.example.com').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    SECRET_KEY = 'test-secret-key-minimum-32-chars-long-for-sessions'
    LOG_TO_FILE = False
    # Tests point these at tmp_path
    USERS_FILE = None
    ROLE_SPACE_MAP_FILE = None
    NAVIGATION_FILE = None


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
