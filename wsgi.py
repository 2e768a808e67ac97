"""
WSGI Entry Point for Gunicorn

Run with: gunicorn wsgi:app
"""

from app_init import create_app

app = create_app()
