"""
Permission Matrix
Role x resource x action grants, plus the Flask decorator that enforces them
on API routes.

Missing entries mean "not allowed". Roles are validated against the fixed
role set; resources and actions are free strings so an unknown pair simply
resolves to False.
"""
import logging
from functools import wraps
from typing import Dict

from flask import jsonify

from space_access import Role, coerce_role

logger = logging.getLogger(__name__)

RESOURCES = [
    'project', 'task', 'document', 'comment', 'channel_message', 'deliverable',
    'invoice', 'contract', 'account', 'vendor', 'deal', 'quote',
]

ACTIONS = ['view', 'create', 'update', 'delete', 'comment', 'upload', 'download', 'assign']


def _grants(view=False, create=False, update=False, delete=False, **extra):
    grants = {'view': view, 'create': create, 'update': update, 'delete': delete}
    grants.update(extra)
    return grants


_FULL = dict(view=True, create=True, update=True, delete=True)
_READ = dict(view=True)

PERMISSIONS_MATRIX: Dict[Role, Dict[str, Dict[str, bool]]] = {
    # Full access to everything
    Role.ADMIN: {
        'project': _grants(**_FULL, comment=True),
        'task': _grants(**_FULL, assign=True),
        'document': _grants(**_FULL, upload=True, download=True),
        'comment': _grants(**_FULL),
        'channel_message': _grants(**_FULL),
        'deliverable': _grants(**_FULL, upload=True, download=True),
        'invoice': _grants(**_FULL),
        'contract': _grants(**_FULL),
        'account': _grants(**_FULL),
        'vendor': _grants(**_FULL),
        'deal': _grants(**_FULL),
        'quote': _grants(**_FULL),
    },

    # Full CRM, limited project management
    Role.SALES: {
        'project': _grants(view=True, create=True, update=True, comment=True),
        'task': _grants(view=True, create=True, update=True, assign=True),
        'document': _grants(view=True, create=True, update=True, upload=True, download=True),
        'comment': _grants(**_FULL),
        'channel_message': _grants(**_FULL),
        'deliverable': _grants(**_READ, upload=False, download=True),
        'invoice': _grants(**_READ),
        'contract': _grants(view=True, create=True, update=True),
        'account': _grants(view=True, create=True, update=True),
        'vendor': _grants(view=True, create=True, update=True),
        'deal': _grants(**_FULL),
        'quote': _grants(**_FULL),
    },

    # Projects and tasks
    Role.DELIVERY: {
        'project': _grants(view=True, create=True, update=True, comment=True),
        'task': _grants(**_FULL, assign=True),
        'document': _grants(**_FULL, upload=True, download=True),
        'comment': _grants(**_FULL),
        'channel_message': _grants(**_FULL),
        'deliverable': _grants(**_FULL, upload=True, download=True),
        'invoice': _grants(**_READ),
        'contract': _grants(**_READ),
        'account': _grants(**_READ),
        'vendor': _grants(**_READ),
        'deal': _grants(**_READ),
        'quote': _grants(**_READ),
    },

    # Invoicing and contracts, read-only elsewhere
    Role.FINANCE: {
        'project': _grants(**_READ, comment=True),
        'task': _grants(**_READ, assign=False),
        'document': _grants(**_READ, upload=False, download=True),
        'comment': _grants(view=True, create=True, update=True),
        'channel_message': _grants(view=True, create=True, update=True),
        'deliverable': _grants(**_READ, upload=False, download=True),
        'invoice': _grants(**_FULL),
        'contract': _grants(view=True, create=True, update=True),
        'account': _grants(**_READ),
        'vendor': _grants(**_READ),
        'deal': _grants(**_READ),
        'quote': _grants(**_READ),
    },

    # Manages their own projects' tasks and documents
    Role.CLIENT_ADMIN: {
        'project': _grants(**_READ, comment=True),
        'task': _grants(**_FULL, assign=False),
        'document': _grants(**_FULL, upload=True, download=True),
        'comment': _grants(**_FULL),
        'channel_message': _grants(**_FULL),
        'deliverable': _grants(**_READ, upload=False, download=True),
        'invoice': _grants(**_READ),
        'contract': _grants(**_READ),
        'account': _grants(**_READ),
        'vendor': _grants(),
        'deal': _grants(),
        'quote': _grants(**_READ),
    },

    # View and comment
    Role.CLIENT_MEMBER: {
        'project': _grants(**_READ, comment=True),
        'task': _grants(**_READ, assign=False),
        'document': _grants(**_READ, upload=False, download=True),
        'comment': _grants(view=True, create=True),
        'channel_message': _grants(view=True, create=True),
        'deliverable': _grants(**_READ, upload=False, download=True),
        'invoice': _grants(**_READ),
        'contract': _grants(**_READ),
        'account': _grants(**_READ),
        'vendor': _grants(),
        'deal': _grants(),
        'quote': _grants(**_READ),
    },

    # Task status, deliverable uploads, own invoices
    Role.VENDOR: {
        'project': _grants(**_READ, comment=True),
        'task': _grants(view=True, update=True, assign=False),
        'document': _grants(**_READ, upload=False, download=True),
        'comment': _grants(**_FULL),
        'channel_message': _grants(**_FULL),
        'deliverable': _grants(view=True, create=True, update=True, upload=True, download=True),
        'invoice': _grants(view=True, create=True, update=True),
        'contract': _grants(**_READ),
        'account': _grants(),
        'vendor': _grants(),
        'deal': _grants(),
        'quote': _grants(),
    },
}


def has_permission(role, resource: str, action: str) -> bool:
    """
    Check if a role may perform an action on a resource

    Raises:
        InvalidRoleError: If role is not a known role
    """
    resolved = coerce_role(role)
    if resolved is None:
        return False
    return PERMISSIONS_MATRIX[resolved].get(resource, {}).get(action, False) is True


def get_role_permissions(role) -> Dict[str, Dict[str, bool]]:
    """Copy of every grant for a role (empty when role is None)"""
    resolved = coerce_role(role)
    if resolved is None:
        return {}
    return {resource: dict(grants) for resource, grants in PERMISSIONS_MATRIX[resolved].items()}


def can_access_resource(role, resource: str) -> bool:
    """Check if a role may perform ANY action on a resource"""
    resolved = coerce_role(role)
    if resolved is None:
        return False
    grants = PERMISSIONS_MATRIX[resolved].get(resource)
    if not grants:
        return False
    return any(allowed is True for allowed in grants.values())


def permission_required(resource: str, action: str):
    """
    Decorator to require a permission on an API route

    Usage:
        @bp.route('/api/invoices', methods=['POST'])
        @permission_required('invoice', 'create')
        def create_invoice(): ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            import auth

            if not auth.is_authenticated():
                return jsonify({'success': False, 'error': 'Authentication required'}), 401

            role = auth.current_role()
            if not has_permission(role, resource, action):
                logger.warning(
                    f"[PERMISSION_DENIED] role={role.value if role else None} "
                    f"resource={resource} action={action}"
                )
                return jsonify({
                    'success': False,
                    'error': 'Permission denied',
                    'required': {'resource': resource, 'action': action},
                    'role': role.value if role else None,
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
