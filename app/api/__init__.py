"""
API Blueprints Package

All HTTP route handlers for the application.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================
- auth_routes.py  : Authentication (/api/auth/*) and user management
- space_routes.py : Space switcher (/api/space), navigation (/api/navigation),
                    permissions and access context

Health endpoints (/api/health, /api/ready, ...) live in health_checks.py.
"""

__all__ = []
