"""
User Authentication and Session Module
Handles the user store, login/logout, and the per-session space state

STORAGE POLICY:
- Users live in a JSON file (USERS_FILE), passwords hashed with werkzeug.
- An empty store is seeded with one admin account.

SESSION:
- The Flask session is the shell that owns the SessionState: user identity,
  role and active space are stored there and rebuilt on each request.
- The active space is only ever written through the space access controller.
"""
import os
import json
import uuid
from datetime import datetime
from functools import wraps
from typing import Optional
from flask import session, jsonify, current_app, has_app_context
from werkzeug.security import generate_password_hash, check_password_hash
import logging

from space_access import (
    SessionState,
    SpaceAccessController,
    User,
    coerce_role,
    coerce_space,
)

logger = logging.getLogger(__name__)

# Default user data file
USERS_FILE = 'data/users.json'


def safe_generate_password_hash(password):
    """Generate password hash using pbkdf2"""
    return generate_password_hash(password, method='pbkdf2:sha256')


# ============================================================================
# USER STORE
# ============================================================================

def _users_file(users_file=None):
    if users_file:
        return users_file
    if has_app_context() and current_app.config.get('USERS_FILE'):
        return current_app.config['USERS_FILE']
    return USERS_FILE


def _default_admin_credentials():
    if has_app_context():
        return (current_app.config.get('DEFAULT_ADMIN_EMAIL', 'admin@example.com'),
                current_app.config.get('DEFAULT_ADMIN_PASSWORD', 'changeme'))
    return 'admin@example.com', 'changeme'


def init_users_file(users_file=None):
    """
    Initialize users file with a default admin account

    Returns:
        True if the file was created, False if it already existed
    """
    path = _users_file(users_file)
    if os.path.exists(path):
        return False

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    email, password = _default_admin_credentials()
    default_admin = {
        'id': str(uuid.uuid4()),
        'name': 'Administrator',
        'email': email,
        'password': safe_generate_password_hash(password),
        'role': 'admin',
        'account_id': None,
        'vendor_contact_id': None,
        'vendor_id': None,
        'active': True,
        'created_at': datetime.utcnow().isoformat(),
        'last_login': None
    }

    with open(path, 'w') as f:
        json.dump({'users': [default_admin]}, f, indent=2)

    logger.info(f"Created default admin account: {email}")
    return True


def load_users(users_file=None):
    """Load all user records"""
    path = _users_file(users_file)
    init_users_file(path)

    with open(path, 'r') as f:
        data = json.load(f)
    return data.get('users', [])


def save_users(users, users_file=None):
    """Persist all user records"""
    path = _users_file(users_file)
    with open(path, 'w') as f:
        json.dump({'users': users}, f, indent=2)


def public_user(record):
    """User record without the password hash"""
    return {k: v for k, v in record.items() if k != 'password'}


def get_user_by_email(email, users_file=None):
    """Get user record by email (case-insensitive)"""
    for user in load_users(users_file):
        if user['email'].lower() == email.lower():
            return user
    return None


def get_user_by_id(user_id, users_file=None):
    """Get user record by ID"""
    for user in load_users(users_file):
        if user['id'] == user_id:
            return user
    return None


def create_user(name, email, password, role, account_id=None, vendor_contact_id=None,
                vendor_id=None, users_file=None):
    """
    Create a new user

    Raises:
        InvalidRoleError: If role is not a known role

    Returns:
        Tuple of (user_record, error)
    """
    resolved_role = coerce_role(role)
    if resolved_role is None:
        return None, "Role is required"

    users = load_users(users_file)

    if any(u['email'].lower() == email.lower() for u in users):
        return None, "User with this email already exists"

    new_user = {
        'id': str(uuid.uuid4()),
        'name': name,
        'email': email,
        'password': safe_generate_password_hash(password),
        'role': resolved_role.value,
        'account_id': account_id,
        'vendor_contact_id': vendor_contact_id,
        'vendor_id': vendor_id,
        'active': True,
        'created_at': datetime.utcnow().isoformat(),
        'last_login': None
    }

    users.append(new_user)
    save_users(users, users_file)

    logger.info(f"Created new user: {email} with role {resolved_role.value}")
    return new_user, None


def _is_last_active_admin(users, target):
    """Check whether target is the only active admin left in users"""
    if target['role'] != 'admin' or not target.get('active', True):
        return False
    active_admins = [u for u in users if u['role'] == 'admin' and u.get('active', True)]
    return len(active_admins) <= 1


def update_user(user_id, users_file=None, **kwargs):
    """
    Update user information

    A role change takes effect at the user's next login. The last active
    admin can be neither demoted nor deactivated, and an email already
    used by another account is refused.

    Raises:
        InvalidRoleError: If role is not a known role

    Returns:
        Tuple of (user_record, error)
    """
    users = load_users(users_file)
    user = next((u for u in users if u['id'] == user_id), None)
    if user is None:
        return None, "User not found"

    new_role = coerce_role(kwargs['role']) if 'role' in kwargs else None
    demoted = new_role is not None and new_role.value != 'admin'
    deactivated = 'active' in kwargs and not kwargs['active']
    if (demoted or deactivated) and _is_last_active_admin(users, user):
        return None, "Cannot demote or deactivate the last admin user"

    if 'email' in kwargs:
        email = kwargs['email'].lower()
        if any(u['email'].lower() == email for u in users if u['id'] != user_id):
            return None, "User with this email already exists"

    if new_role is not None:
        user['role'] = new_role.value
    for key in ['name', 'email', 'account_id', 'vendor_contact_id', 'vendor_id', 'active']:
        if key in kwargs:
            user[key] = kwargs[key]
    if kwargs.get('password'):
        user['password'] = safe_generate_password_hash(kwargs['password'])

    save_users(users, users_file)
    logger.info(f"Updated user: {user['email']}")
    return user, None


def delete_user(user_id, users_file=None):
    """Deactivate a user, refusing to remove the last active admin"""
    users = load_users(users_file)
    target = next((u for u in users if u['id'] == user_id), None)
    if target is None:
        return False, "User not found"

    if _is_last_active_admin(users, target):
        return False, "Cannot deactivate the last admin user"

    target['active'] = False
    save_users(users, users_file)
    logger.info(f"Deactivated user: {target['email']}")
    return True, None


def authenticate_user(email, password, users_file=None):
    """Authenticate user with email and password"""
    users = load_users(users_file)
    user = next((u for u in users if u['email'].lower() == email.lower()), None)

    if not user:
        return None, "Invalid email or password"

    if not user.get('active', False):
        return None, "Account is deactivated"

    if not check_password_hash(user['password'], password):
        return None, "Invalid email or password"

    user['last_login'] = datetime.utcnow().isoformat()
    save_users(users, users_file)

    logger.info(f"User authenticated: {email}")
    return user, None


# ============================================================================
# SESSION
# ============================================================================

def get_controller() -> SpaceAccessController:
    """Space access controller configured on the app"""
    return current_app.space_controller


def login_user(record):
    """
    Open a session for a user record

    The starting space comes from the controller so that a role without
    access to the default space never lands in it.
    """
    user = User.from_dict(record)
    state = get_controller().new_session(user)

    session.clear()
    session['user_id'] = user.id
    session['user_name'] = user.name
    session['user_email'] = user.email
    session['user_role'] = user.role.value
    session['account_id'] = user.account_id
    session['vendor_contact_id'] = user.vendor_contact_id
    session['vendor_id'] = record.get('vendor_id')
    session['space'] = state.active_space.value
    session.permanent = True
    return state


def logout_user():
    """Clear user session"""
    session.clear()


def is_authenticated():
    """Check if user is logged in"""
    return 'user_id' in session


def current_role():
    """
    Role of the session user, None when anonymous

    Raises:
        InvalidRoleError: If the session carries an unknown role
    """
    return coerce_role(session.get('user_role')) if is_authenticated() else None


def get_current_user() -> Optional[User]:
    """User of the current session, rebuilt from session data"""
    if not is_authenticated():
        return None

    return User(
        id=session['user_id'],
        name=session.get('user_name', ''),
        email=session.get('user_email', ''),
        role=coerce_role(session.get('user_role')),
        account_id=session.get('account_id'),
        vendor_contact_id=session.get('vendor_contact_id'),
    )


def load_session_state() -> SessionState:
    """
    SessionState for the current request

    A stored space that the user can no longer access (stale cookie, edited
    role table) is replaced by the user's initial space.
    """
    controller = get_controller()
    user = get_current_user()
    space = coerce_space(session.get('space'))

    if space is None or (user is not None and not controller.can_access_space(user, space)):
        space = controller.initial_space(user)

    return SessionState(active_space=space, user=user)


def save_session_state(state: SessionState):
    """Write the active space back to the session"""
    if state.user is not None:
        session['space'] = state.active_space.value


# ============================================================================
# DECORATORS
# ============================================================================

def login_required(f):
    """Decorator to require login for an API route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require the admin role"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        if current_role() is None or current_role().value != 'admin':
            return jsonify({'success': False, 'error': 'Admin access required'}), 403
        return f(*args, **kwargs)
    return decorated_function


def space_required(space):
    """
    Decorator to require a given space to be active

    Pages owned by a space are only served while that space is active.

    Raises:
        ValueError: If space is not a known space
    """
    required = coerce_space(space)
    if required is None:
        raise ValueError(f"Unknown space: {space!r}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not is_authenticated():
                return jsonify({'success': False, 'error': 'Authentication required'}), 401

            state = load_session_state()
            if state.active_space != required:
                return jsonify({
                    'success': False,
                    'error': 'Space not active',
                    'required_space': required.value,
                    'active_space': state.active_space.value,
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
