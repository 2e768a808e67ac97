"""
Space Access Controller
Resolves which workspace spaces (internal, client, vendor) a user may enter,
which space is active for a session, and how a space switch is handled.

RULES:
- The role -> spaces table is configuration, validated once when loaded.
- A denied space switch is a silent no-op (logged), never an exception.
- An unknown role is a data defect and raises InvalidRoleError.
- This is a UI-level gate. Data access is filtered independently
  (see access_control.py).
"""
import collections.abc
import json
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Organizational function of a user."""
    ADMIN = 'admin'
    SALES = 'sales'
    DELIVERY = 'delivery'
    FINANCE = 'finance'
    CLIENT_ADMIN = 'client_admin'
    CLIENT_MEMBER = 'client_member'
    VENDOR = 'vendor'


class Space(str, Enum):
    """UI partition. Declaration order is the canonical display order."""
    INTERNAL = 'internal'
    CLIENT = 'client'
    VENDOR = 'vendor'


ALL_SPACES: FrozenSet[Space] = frozenset(Space)


class InvalidRoleError(ValueError):
    """Raised when a role value is outside the fixed role set"""
    def __init__(self, role: Any):
        self.role = role
        super().__init__(f"Invalid role: {role!r}")


class RoleSpaceMapError(ValueError):
    """Raised when a role -> spaces table breaks totality or coverage"""
    pass


def coerce_role(role: Union[Role, str, None]) -> Optional[Role]:
    """
    Normalize a role value

    Args:
        role: Role member, its string value, or None

    Returns:
        Role member, or None for an absent role

    Raises:
        InvalidRoleError: If the value is not one of the known roles
    """
    if role is None:
        return None
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        raise InvalidRoleError(role) from None


def coerce_space(space: Union[Space, str, None]) -> Optional[Space]:
    """Normalize a space value, returning None when it is not a known space"""
    if isinstance(space, Space):
        return space
    try:
        return Space(space)
    except ValueError:
        return None


def sort_spaces(spaces: Iterable[Space]) -> List[Space]:
    """Order spaces canonically (internal, client, vendor)"""
    wanted = set(spaces)
    return [space for space in Space if space in wanted]


# Default role -> spaces table
DEFAULT_ROLE_SPACES = {
    Role.ADMIN: [Space.INTERNAL, Space.CLIENT, Space.VENDOR],
    Role.SALES: [Space.INTERNAL],
    Role.DELIVERY: [Space.INTERNAL],
    Role.FINANCE: [Space.INTERNAL],
    Role.CLIENT_ADMIN: [Space.CLIENT],
    Role.CLIENT_MEMBER: [Space.CLIENT],
    Role.VENDOR: [Space.VENDOR],
}


class RoleSpaceMap(collections.abc.Mapping):
    """
    Immutable, validated mapping of every Role to a non-empty set of Spaces.

    The union of all sets must cover every Space so that no space is
    unreachable.
    """

    def __init__(self, table: Mapping[Any, Iterable[Any]]):
        resolved: Dict[Role, FrozenSet[Space]] = {}

        for raw_role, raw_spaces in table.items():
            role = coerce_role(raw_role)
            if role is None:
                raise RoleSpaceMapError("Space map contains an empty role key")
            spaces = set()
            for raw_space in raw_spaces:
                space = coerce_space(raw_space)
                if space is None:
                    raise RoleSpaceMapError(f"Unknown space {raw_space!r} for role '{role.value}'")
                spaces.add(space)
            if not spaces:
                raise RoleSpaceMapError(f"Role '{role.value}' has no permitted space")
            resolved[role] = frozenset(spaces)

        missing_roles = [role.value for role in Role if role not in resolved]
        if missing_roles:
            raise RoleSpaceMapError(f"Roles missing from space map: {', '.join(missing_roles)}")

        covered = frozenset().union(*resolved.values())
        orphans = [space.value for space in Space if space not in covered]
        if orphans:
            raise RoleSpaceMapError(f"Spaces unreachable by any role: {', '.join(orphans)}")

        self._table = MappingProxyType(resolved)

    def __getitem__(self, role):
        return self._table[role]

    def __iter__(self):
        return iter(self._table)

    def __len__(self):
        return len(self._table)

    def __repr__(self):
        return f"RoleSpaceMap({self.to_dict()!r})"

    def to_dict(self) -> Dict[str, List[str]]:
        """Serialize as role -> canonically ordered space values"""
        return {role.value: [space.value for space in sort_spaces(spaces)]
                for role, spaces in self._table.items()}

    @classmethod
    def from_json_file(cls, filepath: str) -> 'RoleSpaceMap':
        """
        Load a role -> spaces table from a JSON object file

        Args:
            filepath: Path to a JSON file like {"admin": ["internal", ...], ...}

        Returns:
            Validated RoleSpaceMap
        """
        with open(filepath, 'r') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise RoleSpaceMapError(f"Space map file must contain a JSON object: {filepath}")

        logger.info(f"Loaded role space map from {filepath}")
        return cls(data)


DEFAULT_ROLE_SPACE_MAP = RoleSpaceMap(DEFAULT_ROLE_SPACES)


@dataclass(frozen=True)
class User:
    """Authenticated user as seen by the access layer"""
    id: str
    name: str
    email: str
    role: Optional[Role] = None
    account_id: Optional[str] = None
    vendor_contact_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Build a User from a stored record, validating the role"""
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            email=data.get('email', ''),
            role=coerce_role(data.get('role')),
            account_id=data.get('account_id'),
            vendor_contact_id=data.get('vendor_contact_id'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role.value if self.role else None,
            'account_id': self.account_id,
            'vendor_contact_id': self.vendor_contact_id,
        }


@dataclass
class SessionState:
    """Active space and current user of one client session"""
    active_space: Space
    user: Optional[User] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class SpaceAccessController:
    """
    Space access decisions for one role -> spaces table.

    Stateless apart from its configuration; session state is passed in
    explicitly.
    """

    def __init__(self, role_space_map: Optional[RoleSpaceMap] = None,
                 default_space: Union[Space, str] = Space.INTERNAL):
        self.role_space_map = role_space_map if role_space_map is not None else DEFAULT_ROLE_SPACE_MAP
        space = coerce_space(default_space)
        if space is None:
            raise ValueError(f"Unknown default space: {default_space!r}")
        self.default_space = space

    def permitted_spaces(self, role: Union[Role, str, None]) -> FrozenSet[Space]:
        """
        Spaces a role may enter

        Args:
            role: Role member or value; None means unauthenticated

        Returns:
            Frozen set of spaces (empty for None)

        Raises:
            InvalidRoleError: If the role is not a known role
        """
        resolved = coerce_role(role)
        if resolved is None:
            return frozenset()
        return self.role_space_map[resolved]

    def can_access_space(self, user: Optional[User], space: Union[Space, str]) -> bool:
        """Check whether a user may occupy a space"""
        if user is None or user.role is None:
            return False
        target = coerce_space(space)
        if target is None:
            return False
        return target in self.permitted_spaces(user.role)

    def available_spaces(self, user: Optional[User]) -> List[Space]:
        """Spaces offered by the space switcher, in canonical order"""
        if user is None:
            return []
        return sort_spaces(self.permitted_spaces(user.role))

    def initial_space(self, user: Optional[User]) -> Space:
        """
        Space a new session starts in

        The configured default is only used when the user may access it;
        otherwise the first permitted space in canonical order.
        """
        if user is None or self.can_access_space(user, self.default_space):
            return self.default_space
        available = self.available_spaces(user)
        return available[0] if available else self.default_space

    def new_session(self, user: Optional[User] = None) -> SessionState:
        """Create the session state for a freshly authenticated user"""
        return SessionState(active_space=self.initial_space(user), user=user)

    def request_space_change(self, state: SessionState, target: Union[Space, str]) -> SessionState:
        """
        Switch the active space when the session's user may access it

        A denied request leaves the state untouched. Callers must read
        state.active_space afterwards instead of assuming success.

        Args:
            state: Session state to update
            target: Requested space

        Returns:
            The same SessionState, committed
        """
        with state.lock:
            if not self.can_access_space(state.user, target):
                logger.warning(
                    f"[SPACE_DENIED] user={state.user.email if state.user else None} "
                    f"target={getattr(target, 'value', target)!r} active={state.active_space.value}"
                )
                return state

            space = coerce_space(target)
            if space != state.active_space:
                logger.info(f"Space changed: {state.active_space.value} -> {space.value} "
                            f"for {state.user.email}")
                state.active_space = space
        return state

    def reset(self, state: SessionState) -> SessionState:
        """Return a session to its defaults (logout)"""
        with state.lock:
            state.user = None
            state.active_space = self.default_space
        return state


_default_controller = SpaceAccessController()


def permitted_spaces(role: Union[Role, str, None]) -> FrozenSet[Space]:
    """permitted_spaces() against the default role -> spaces table"""
    return _default_controller.permitted_spaces(role)


def can_access_space(user: Optional[User], space: Union[Space, str]) -> bool:
    """can_access_space() against the default role -> spaces table"""
    return _default_controller.can_access_space(user, space)


def request_space_change(state: SessionState, target: Union[Space, str]) -> SessionState:
    """request_space_change() against the default role -> spaces table"""
    return _default_controller.request_space_change(state, target)
