"""
Centralized Logging Configuration
Console output always, rotating file output unless disabled by config
"""
import logging
import logging.handlers
from pathlib import Path


def setup_logging(app):
    """
    Setup application-wide logging

    Args:
        app: Flask application instance
    """
    log_level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    log_format = app.config['LOG_FORMAT']

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(console_handler)

    if app.config.get('LOG_TO_FILE', True):
        log_dir = Path('logs')
        log_dir.mkdir(exist_ok=True)
        log_path = log_dir / app.config['LOG_FILE']

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(file_handler)
        app.logger.info(f"Log file: {log_path}")

    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    app.logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level")

    return root_logger
