"""
Space Routes Blueprint

Space switcher, sidebar navigation and access information for the
current session.
"""

from flask import Blueprint, current_app, request, jsonify
import logging

import auth
from access_control import get_access_context
from navigation import SPACE_LABELS, PORTAL_LABELS
from permissions import get_role_permissions
from validators import validate_space_change_request

logger = logging.getLogger(__name__)

# Create blueprint
space_bp = Blueprint('space_bp', __name__)


def _space_payload(state):
    controller = auth.get_controller()
    return {
        'active_space': state.active_space.value,
        'portal_label': PORTAL_LABELS[state.active_space],
        'available_spaces': [
            {'space': space.value, 'label': SPACE_LABELS[space]}
            for space in controller.available_spaces(state.user)
        ],
        'role': state.user.role.value if state.user and state.user.role else None,
    }


@space_bp.route('/api/space', methods=['GET'])
@auth.login_required
def get_space():
    """Active space and the spaces the switcher may offer"""
    state = auth.load_session_state()
    return jsonify({'success': True, **_space_payload(state)})


@space_bp.route('/api/space', methods=['POST'])
@auth.login_required
def change_space():
    """
    Switch the active space

    A space the user may not enter leaves the session unchanged and is
    reported with changed=false, not as an error.
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_space_change_request(data)
    if not is_valid:
        return jsonify({'success': False, 'error': error}), 400

    state = auth.load_session_state()
    previous = state.active_space

    auth.get_controller().request_space_change(state, data['space'])
    auth.save_session_state(state)

    return jsonify({
        'success': True,
        'requested_space': data['space'],
        'changed': state.active_space != previous,
        'granted': state.active_space.value == data['space'],
        **_space_payload(state),
    })


@space_bp.route('/api/navigation', methods=['GET'])
@auth.login_required
def get_navigation():
    """Sidebar entries visible in the active space"""
    state = auth.load_session_state()
    navigation = current_app.navigation
    return jsonify({'success': True, **navigation.for_space(state.active_space)})


@space_bp.route('/api/navigation/route-access', methods=['GET'])
@auth.login_required
def get_route_access():
    """Whether a front-end route may be mounted in the active space"""
    url = request.args.get('url', '')
    if not url:
        return jsonify({'success': False, 'error': 'url parameter required'}), 400

    state = auth.load_session_state()
    visible = current_app.navigation.is_route_visible(url, state.active_space)
    return jsonify({
        'success': True,
        'url': url,
        'active_space': state.active_space.value,
        'visible': visible,
    })


@space_bp.route('/api/permissions', methods=['GET'])
@auth.login_required
def get_permissions():
    """Permission grants of the current role"""
    role = auth.current_role()
    return jsonify({
        'success': True,
        'role': role.value,
        'permissions': get_role_permissions(role),
    })


@space_bp.route('/api/access-context', methods=['GET'])
@auth.login_required
def get_access_context_api():
    """Data filtering context of the current session"""
    context = get_access_context()
    return jsonify({
        'success': True,
        'context': {
            'user_id': context.user_id,
            'role': context.role.value if context.role else None,
            'space': context.space,
            'account_id': context.account_id,
            'vendor_contact_id': context.vendor_contact_id,
            'org_id': context.org_id,
            'sees_all_records': context.is_internal,
        },
    })
