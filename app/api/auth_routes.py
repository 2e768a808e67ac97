"""
Authentication Routes Blueprint

Handles login/logout, the current user, and user management API endpoints.
"""

from flask import Blueprint, request, jsonify
import logging

import auth
from validators import (
    ValidationError,
    validate_login_request,
    validate_user_request,
    validate_user_update_request,
)

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ============================================================================
# LOGIN/LOGOUT ROUTES
# ============================================================================

@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """API endpoint for user login"""
    data = _json_body()
    is_valid, error = validate_login_request(data)
    if not is_valid:
        return jsonify({'success': False, 'error': error}), 400

    user, error = auth.authenticate_user(data['email'], data['password'])
    if error:
        return jsonify({'success': False, 'error': error}), 401

    state = auth.login_user(user)

    return jsonify({
        'success': True,
        'user': state.user.to_dict(),
        'space': state.active_space.value,
    })


@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """API endpoint for user logout"""
    auth.logout_user()
    return jsonify({'success': True})


@auth_bp.route('/api/auth/current-user', methods=['GET'])
@auth.login_required
def get_current_user_api():
    """Get current logged-in user info"""
    user = auth.get_current_user()
    return jsonify({'success': True, 'user': user.to_dict()})


# ============================================================================
# USER MANAGEMENT API (Admin only)
# ============================================================================

@auth_bp.route('/api/auth/users', methods=['GET'])
@auth.admin_required
def get_users():
    """Get all users (admin only)"""
    users = [auth.public_user(u) for u in auth.load_users()]
    return jsonify({'success': True, 'users': users})


@auth_bp.route('/api/auth/users', methods=['POST'])
@auth.admin_required
def create_user_api():
    """Create new user (admin only)"""
    data = _json_body()
    is_valid, error = validate_user_request(data)
    if not is_valid:
        return jsonify({'success': False, 'error': error}), 400

    user, error = auth.create_user(
        data['name'],
        data['email'],
        data['password'],
        data['role'],
        account_id=data.get('account_id'),
        vendor_contact_id=data.get('vendor_contact_id'),
        vendor_id=data.get('vendor_id'),
    )
    if error:
        return jsonify({'success': False, 'error': error}), 400

    return jsonify({'success': True, 'user': auth.public_user(user)}), 201


@auth_bp.route('/api/auth/users/<user_id>', methods=['PUT'])
@auth.admin_required
def update_user_api(user_id):
    """Update user (admin only)"""
    data = _json_body()

    allowed = ['name', 'email', 'password', 'role', 'account_id', 'vendor_contact_id', 'vendor_id', 'active']
    update_data = {k: v for k, v in data.items() if k in allowed}

    is_valid, error = validate_user_update_request(update_data)
    if not is_valid:
        return jsonify({'success': False, 'error': error}), 400

    if auth.get_user_by_id(user_id) is None:
        return jsonify({'success': False, 'error': "User not found"}), 404

    user, error = auth.update_user(user_id, **update_data)
    if error:
        return jsonify({'success': False, 'error': error}), 400

    return jsonify({'success': True, 'user': auth.public_user(user)})


@auth_bp.route('/api/auth/users/<user_id>', methods=['DELETE'])
@auth.admin_required
def delete_user_api(user_id):
    """Deactivate user (admin only)"""
    success, error = auth.delete_user(user_id)
    if error:
        return jsonify({'success': False, 'error': error}), 400

    return jsonify({'success': True})
