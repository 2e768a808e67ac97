"""
Input Validation Utilities
Validation for API request payloads (login, user management, space switching)
"""
import re
from typing import Dict, Any, List, Optional, Tuple
import logging

from space_access import Role, Space

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 200

VALID_ROLES = [role.value for role in Role]
VALID_SPACES = [space.value for space in Space]


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    return True, None


def validate_role(role: Any) -> Tuple[bool, Optional[str]]:
    """Validate a role value against the fixed role set"""
    if role not in VALID_ROLES:
        return False, f"Invalid role: {role}. Valid roles: {', '.join(VALID_ROLES)}"
    return True, None


def _validate_string_fields(data: Dict[str, Any], fields: List[str]) -> Tuple[bool, Optional[str]]:
    """Check that the given fields, when present, hold strings"""
    for field in fields:
        if field in data and not isinstance(data[field], str):
            return False, f"Field '{field}' must be a string"
    return True, None


def _validate_name_and_password(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    if 'name' in data and len(data['name']) > MAX_NAME_LENGTH:
        return False, f"Name too long (maximum {MAX_NAME_LENGTH} characters)"

    if 'password' in data and len(data['password']) < MIN_PASSWORD_LENGTH:
        return False, f"Password too short (minimum {MIN_PASSWORD_LENGTH} characters)"

    return True, None


def validate_login_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a login payload ({email, password})"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = validate_required_fields(data, ['email', 'password'])
    if not is_valid:
        return False, error

    is_valid, error = _validate_string_fields(data, ['email', 'password'])
    if not is_valid:
        return False, error

    return validate_email(data['email'])


def validate_user_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a user creation payload ({name, email, password, role})"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = validate_required_fields(data, ['name', 'email', 'password', 'role'])
    if not is_valid:
        return False, error

    is_valid, error = _validate_string_fields(data, ['name', 'email', 'password'])
    if not is_valid:
        return False, error

    is_valid, error = _validate_name_and_password(data)
    if not is_valid:
        return False, error

    is_valid, error = validate_email(data['email'])
    if not is_valid:
        return False, error

    return validate_role(data['role'])


def validate_user_update_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate a partial user update

    Only the fields present are checked; an empty password means
    "keep the current one".
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = _validate_string_fields(data, ['name', 'email', 'password'])
    if not is_valid:
        return False, error

    if data.get('password') == '':
        data = {k: v for k, v in data.items() if k != 'password'}

    is_valid, error = _validate_name_and_password(data)
    if not is_valid:
        return False, error

    if 'email' in data:
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, error

    if 'role' in data:
        is_valid, error = validate_role(data['role'])
        if not is_valid:
            return False, error

    if 'active' in data and not isinstance(data['active'], bool):
        return False, "Field 'active' must be true or false"

    return True, None


def validate_space_change_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate a space switch payload ({space})

    Only the shape is checked here. Whether the user may enter the space is
    decided by the space access controller.
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = validate_required_fields(data, ['space'])
    if not is_valid:
        return False, error

    if data['space'] not in VALID_SPACES:
        return False, f"Unknown space: {data['space']}. Valid spaces: {', '.join(VALID_SPACES)}"

    return True, None
