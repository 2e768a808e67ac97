"""
Navigation Configuration & Visibility
Static sidebar entries grouped by category, each tagged with the spaces it
appears in, and the filters that select what the active space may see.

Entries are loaded once at startup and never mutated.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from space_access import Space, coerce_space, sort_spaces

logger = logging.getLogger(__name__)


# Space display labels (space switcher + portal badge)
SPACE_LABELS = {
    Space.INTERNAL: 'Admin',
    Space.CLIENT: 'Espace Client',
    Space.VENDOR: 'Espace Sous-traitant',
}

PORTAL_LABELS = {
    Space.INTERNAL: 'Admin',
    Space.CLIENT: 'Client',
    Space.VENDOR: 'Prestataire',
}


class NavigationConfigError(ValueError):
    """Raised when a navigation definition is malformed"""
    pass


def _parse_spaces(raw_spaces: Iterable[Any], owner: str) -> FrozenSet[Space]:
    spaces = set()
    for raw in raw_spaces:
        space = coerce_space(raw)
        if space is None:
            raise NavigationConfigError(f"Unknown space {raw!r} on '{owner}'")
        spaces.add(space)
    if not spaces:
        raise NavigationConfigError(f"'{owner}' must be visible in at least one space")
    return frozenset(spaces)


@dataclass(frozen=True)
class NavigationEntry:
    """One menu item / route"""
    title: str
    url: str
    icon: str
    spaces: FrozenSet[Space]

    def __post_init__(self):
        object.__setattr__(self, 'spaces', _parse_spaces(self.spaces, self.title))

    def is_visible_in(self, space: Union[Space, str]) -> bool:
        return coerce_space(space) in self.spaces

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'url': self.url,
            'icon': self.icon,
            'spaces': [space.value for space in sort_spaces(self.spaces)],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NavigationEntry':
        return cls(
            title=data['title'],
            url=data['url'],
            icon=data.get('icon', ''),
            spaces=data.get('spaces', []),
        )


@dataclass(frozen=True)
class NavigationCategory:
    """Collapsible sidebar group of entries"""
    title: str
    icon: str
    spaces: FrozenSet[Space]
    items: Tuple[NavigationEntry, ...]

    def __post_init__(self):
        object.__setattr__(self, 'spaces', _parse_spaces(self.spaces, self.title))
        object.__setattr__(self, 'items', tuple(self.items))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'icon': self.icon,
            'spaces': [space.value for space in sort_spaces(self.spaces)],
            'items': [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NavigationCategory':
        return cls(
            title=data['title'],
            icon=data.get('icon', ''),
            spaces=data.get('spaces', []),
            items=tuple(NavigationEntry.from_dict(item) for item in data.get('items', [])),
        )


def visible_navigation(entries: Sequence[NavigationEntry],
                       active_space: Union[Space, str]) -> List[NavigationEntry]:
    """
    Entries visible in the active space

    Args:
        entries: Ordered navigation entries
        active_space: Currently active space

    Returns:
        Stable sub-sequence of entries whose spaces contain active_space
    """
    space = coerce_space(active_space)
    return [entry for entry in entries if space in entry.spaces]


def visible_categories(categories: Sequence[NavigationCategory],
                       active_space: Union[Space, str]) -> List[NavigationCategory]:
    """
    Categories visible in the active space, each with its entries filtered

    Categories left without any visible entry are dropped.
    """
    space = coerce_space(active_space)
    result = []
    for category in categories:
        if space not in category.spaces:
            continue
        items = visible_navigation(category.items, space)
        if items:
            result.append(NavigationCategory(
                title=category.title,
                icon=category.icon,
                spaces=category.spaces,
                items=tuple(items),
            ))
    return result


class Navigation:
    """Complete sidebar definition: grouped categories plus footer items"""

    def __init__(self, categories: Sequence[NavigationCategory],
                 secondary_items: Sequence[NavigationEntry] = ()):
        self.categories = tuple(categories)
        self.secondary_items = tuple(secondary_items)

    def entries(self) -> List[NavigationEntry]:
        """All entries in sidebar order"""
        flat = [item for category in self.categories for item in category.items]
        flat.extend(self.secondary_items)
        return flat

    def for_space(self, active_space: Union[Space, str]) -> Dict[str, Any]:
        """Serialized sidebar for one space"""
        space = coerce_space(active_space)
        return {
            'space': space.value if space else None,
            'categories': [c.to_dict() for c in visible_categories(self.categories, space)],
            'secondary': [e.to_dict() for e in visible_navigation(self.secondary_items, space)],
        }

    def is_route_visible(self, url: str, active_space: Union[Space, str]) -> bool:
        """
        Whether a route may be reached while active_space is active

        Routes that no entry declares are not governed by navigation and
        are always allowed.
        """
        return is_route_visible(url, active_space, self.entries())

    def spaces_without_entries(self) -> List[Space]:
        """Spaces for which the sidebar would be empty"""
        return [space for space in Space if not visible_navigation(self.entries(), space)]

    @classmethod
    def from_json_file(cls, filepath: str) -> 'Navigation':
        """Load a navigation definition from {"categories": [...], "secondary": [...]}"""
        with open(filepath, 'r') as f:
            data = json.load(f)

        try:
            categories = [NavigationCategory.from_dict(c) for c in data.get('categories', [])]
            secondary = [NavigationEntry.from_dict(e) for e in data.get('secondary', [])]
        except KeyError as e:
            raise NavigationConfigError(f"Navigation entry missing field {e} in {filepath}") from e

        logger.info(f"Loaded navigation from {filepath} ({len(categories)} categories)")
        return cls(categories, secondary)


def is_route_visible(url: str, active_space: Union[Space, str],
                     entries: Sequence[NavigationEntry]) -> bool:
    """Check the routing contract for one url against a list of entries"""
    owners = [entry for entry in entries if entry.url == url]
    if not owners:
        return True
    space = coerce_space(active_space)
    return any(space in entry.spaces for entry in owners)


# ============================================================================
# DEFAULT SIDEBAR
# ============================================================================

_I = Space.INTERNAL
_C = Space.CLIENT
_V = Space.VENDOR

DEFAULT_CATEGORIES = (
    NavigationCategory('Commercial', 'trending-up', {_I}, (
        NavigationEntry('Pipeline', '/pipeline', 'target', {_I}),
        NavigationEntry('Base Clients', '/accounts', 'building-2', {_I}),
    )),
    NavigationCategory('Contacts', 'users', {_I}, (
        NavigationEntry('Tous les contacts', '/contacts', 'users', {_I}),
    )),
    NavigationCategory('Projets', 'folder-kanban', {_I, _C, _V}, (
        NavigationEntry('Vue Projets', '/projects', 'folder-kanban', {_I, _C, _V}),
        NavigationEntry('Mes Missions', '/missions', 'user-cog', {_V}),
    )),
    NavigationCategory('Finance', 'pie-chart', {_I, _C}, (
        NavigationEntry('Finance globale', '/finance', 'pie-chart', {_I}),
        NavigationEntry('Factures Clients', '/invoices', 'receipt', {_I, _C}),
        NavigationEntry('Dépenses', '/expenses', 'wallet', {_I}),
        NavigationEntry('Prestataires', '/vendors', 'briefcase', {_I}),
    )),
    NavigationCategory('Tâches', 'list-todo', {_I, _C, _V}, (
        NavigationEntry('Toutes les tâches', '/tasks', 'list-todo', {_I, _C, _V}),
    )),
    NavigationCategory('RDV', 'calendar', {_I}, (
        NavigationEntry('Calendrier', '/calendar', 'calendar', {_I}),
    )),
    NavigationCategory('Documents', 'folder-open', {_I, _C, _V}, (
        NavigationEntry('Tous les documents', '/documents', 'file-text', {_I, _C, _V}),
        NavigationEntry('Contrats', '/contracts', 'file-signature', {_I, _C}),
    )),
    NavigationCategory('Administration', 'shield', {_I}, (
        NavigationEntry('Gestion des accès', '/invitations', 'user-plus', {_I}),
        NavigationEntry('Sync Notion', '/notion-sync', 'refresh-cw', {_I}),
    )),
)

DEFAULT_SECONDARY_ITEMS = (
    NavigationEntry('Paramètres', '/settings', 'settings', {_I, _C, _V}),
    NavigationEntry('Aide', '/help', 'help-circle', {_I, _C, _V}),
)

DEFAULT_NAVIGATION = Navigation(DEFAULT_CATEGORIES, DEFAULT_SECONDARY_ITEMS)


def load_navigation(filepath: Optional[str] = None) -> Navigation:
    """Navigation from a JSON file when configured, else the built-in sidebar"""
    if filepath:
        return Navigation.from_json_file(filepath)
    return DEFAULT_NAVIGATION
