"""
Access Context & Record Filtering
Narrows project, account and task records to what the session's role may see.

This is the server-side counterpart of the space gate: space switching only
changes what the UI offers, these filters decide what data leaves the API.
Records are plain dicts as returned by the data layer.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from space_access import Role, coerce_role

logger = logging.getLogger(__name__)

DEFAULT_ORG_ID = 'default-org'

INTERNAL_ROLES = frozenset({Role.ADMIN, Role.SALES, Role.DELIVERY, Role.FINANCE})
CLIENT_ROLES = frozenset({Role.CLIENT_ADMIN, Role.CLIENT_MEMBER})


@dataclass(frozen=True)
class AccessContext:
    """Who is asking, resolved from the session"""
    user_id: str
    role: Optional[Role]
    space: Optional[str] = None
    account_id: Optional[str] = None
    vendor_contact_id: Optional[str] = None
    vendor_id: Optional[str] = None
    org_id: str = DEFAULT_ORG_ID

    @property
    def is_internal(self) -> bool:
        return self.role in INTERNAL_ROLES

    @property
    def is_client(self) -> bool:
        return self.role in CLIENT_ROLES

    @property
    def is_vendor(self) -> bool:
        return self.role == Role.VENDOR


def get_access_context() -> Optional[AccessContext]:
    """Build the access context of the current Flask session, None if anonymous"""
    from flask import session

    user_id = session.get('user_id')
    if not user_id:
        return None

    return AccessContext(
        user_id=user_id,
        role=coerce_role(session.get('user_role')),
        space=session.get('space'),
        account_id=session.get('account_id') or None,
        vendor_contact_id=session.get('vendor_contact_id') or None,
        vendor_id=session.get('vendor_id') or None,
        org_id=session.get('org_id') or DEFAULT_ORG_ID,
    )


def get_vendor_project_ids(projects: Iterable[Dict[str, Any]],
                           vendor_contact_id: Optional[str],
                           vendor_id: Optional[str] = None,
                           assigned_project_ids: Iterable[str] = ()) -> Set[str]:
    """
    Project ids a vendor contact works on

    A project belongs to the contact when it names that contact, or when it
    names no contact but is assigned to the contact's vendor company.
    Explicit assignments (vendor <-> project links) are added on top.
    """
    if not vendor_contact_id:
        return set()

    project_ids = set()
    for project in projects:
        if project.get('vendor_contact_id') == vendor_contact_id:
            project_ids.add(project['id'])
        elif not project.get('vendor_contact_id') and vendor_id and project.get('vendor_id') == vendor_id:
            project_ids.add(project['id'])

    project_ids.update(assigned_project_ids)
    return project_ids


def filter_projects_by_access(projects: List[Dict[str, Any]], context: AccessContext,
                              assigned_project_ids: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """Projects visible to the context"""
    if context.is_internal:
        return list(projects)

    if context.is_client:
        if not context.account_id:
            return []
        return [p for p in projects if p.get('account_id') == context.account_id]

    if context.is_vendor:
        if not context.vendor_contact_id:
            return []
        allowed = get_vendor_project_ids(projects, context.vendor_contact_id,
                                         context.vendor_id, assigned_project_ids)
        return [p for p in projects if p['id'] in allowed]

    return []


def filter_accounts_by_access(accounts: List[Dict[str, Any]], context: AccessContext,
                              projects: Iterable[Dict[str, Any]] = (),
                              assigned_project_ids: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """
    Accounts visible to the context

    Vendors see the accounts of the projects they work on, so the project
    list is needed to resolve them.
    """
    if context.is_internal:
        return list(accounts)

    if context.is_client:
        if not context.account_id:
            return []
        return [a for a in accounts if a.get('id') == context.account_id]

    if context.is_vendor:
        if not context.vendor_contact_id:
            return []
        projects = list(projects)
        allowed = get_vendor_project_ids(projects, context.vendor_contact_id,
                                         context.vendor_id, assigned_project_ids)
        account_ids = {p['account_id'] for p in projects if p['id'] in allowed and p.get('account_id')}
        return [a for a in accounts if a.get('id') in account_ids]

    return []


def filter_tasks_by_access(tasks: List[Dict[str, Any]], context: AccessContext,
                           projects: Iterable[Dict[str, Any]] = (),
                           assigned_project_ids: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """Tasks visible to the context, through the projects it may see"""
    if context.is_internal:
        return list(tasks)

    visible_projects = filter_projects_by_access(list(projects), context, assigned_project_ids)
    project_ids = {p['id'] for p in visible_projects}
    return [t for t in tasks if t.get('project_id') and t['project_id'] in project_ids]


def validate_client_account_access(account_id: str, user_account_id: Optional[str]) -> bool:
    """Check a client user is asking for their own account"""
    if not user_account_id:
        return False
    return account_id == user_account_id


def validate_vendor_project_access(project_id: str, projects: Iterable[Dict[str, Any]],
                                   vendor_contact_id: Optional[str], vendor_id: Optional[str] = None,
                                   assigned_project_ids: Iterable[str] = ()) -> bool:
    """Check a vendor contact is assigned to a project"""
    allowed = get_vendor_project_ids(projects, vendor_contact_id, vendor_id, assigned_project_ids)
    if project_id not in allowed:
        logger.warning(f"Vendor contact {vendor_contact_id} denied access to project {project_id}")
        return False
    return True
