"""
Tests for access-context record filtering
"""
import pytest

from access_control import (
    AccessContext,
    DEFAULT_ORG_ID,
    filter_accounts_by_access,
    filter_projects_by_access,
    filter_tasks_by_access,
    get_vendor_project_ids,
    validate_client_account_access,
    validate_vendor_project_access,
)
from space_access import Role


@pytest.fixture
def projects():
    return [
        {'id': 'p1', 'account_id': 'acc-1', 'vendor_contact_id': 'contact-1', 'vendor_id': 'vendor-co-1'},
        {'id': 'p2', 'account_id': 'acc-1', 'vendor_contact_id': None, 'vendor_id': 'vendor-co-1'},
        {'id': 'p3', 'account_id': 'acc-2', 'vendor_contact_id': 'contact-2', 'vendor_id': 'vendor-co-1'},
        {'id': 'p4', 'account_id': 'acc-3', 'vendor_contact_id': None, 'vendor_id': None},
    ]


@pytest.fixture
def accounts():
    return [{'id': 'acc-1'}, {'id': 'acc-2'}, {'id': 'acc-3'}]


@pytest.fixture
def tasks():
    return [
        {'id': 't1', 'project_id': 'p1'},
        {'id': 't2', 'project_id': 'p3'},
        {'id': 't3', 'project_id': 'p4'},
        {'id': 't4', 'project_id': None},
    ]


def _context(role, **kwargs):
    return AccessContext(user_id='u1', role=role, **kwargs)


@pytest.mark.unit
class TestVendorProjectIds:
    """Tests for vendor project resolution"""

    def test_contact_and_company_fallback(self, projects):
        ids = get_vendor_project_ids(projects, 'contact-1', 'vendor-co-1')
        # p3 names another contact of the same company
        assert ids == {'p1', 'p2'}

    def test_without_company(self, projects):
        assert get_vendor_project_ids(projects, 'contact-1') == {'p1'}

    def test_explicit_assignments_added(self, projects):
        ids = get_vendor_project_ids(projects, 'contact-1', None, assigned_project_ids=['p4'])
        assert ids == {'p1', 'p4'}

    def test_no_contact(self, projects):
        assert get_vendor_project_ids(projects, None, 'vendor-co-1') == set()


@pytest.mark.unit
class TestFilterProjects:
    """Tests for project filtering"""

    @pytest.mark.parametrize('role', [Role.ADMIN, Role.SALES, Role.DELIVERY, Role.FINANCE])
    def test_internal_roles_see_everything(self, projects, role):
        assert filter_projects_by_access(projects, _context(role)) == projects

    def test_client_sees_own_account(self, projects):
        result = filter_projects_by_access(projects, _context(Role.CLIENT_MEMBER, account_id='acc-1'))
        assert [p['id'] for p in result] == ['p1', 'p2']

    def test_client_without_account_sees_nothing(self, projects):
        assert filter_projects_by_access(projects, _context(Role.CLIENT_ADMIN)) == []

    def test_vendor_sees_assigned_projects(self, projects):
        context = _context(Role.VENDOR, vendor_contact_id='contact-1', vendor_id='vendor-co-1')
        result = filter_projects_by_access(projects, context)
        assert [p['id'] for p in result] == ['p1', 'p2']

    def test_vendor_without_contact_sees_nothing(self, projects):
        assert filter_projects_by_access(projects, _context(Role.VENDOR)) == []

    def test_anonymous_context_sees_nothing(self, projects):
        assert filter_projects_by_access(projects, _context(None)) == []


@pytest.mark.unit
class TestFilterAccountsAndTasks:
    """Tests for account and task filtering"""

    def test_client_sees_only_own_account(self, accounts):
        result = filter_accounts_by_access(accounts, _context(Role.CLIENT_ADMIN, account_id='acc-2'))
        assert result == [{'id': 'acc-2'}]

    def test_vendor_sees_accounts_of_its_projects(self, accounts, projects):
        context = _context(Role.VENDOR, vendor_contact_id='contact-2')
        result = filter_accounts_by_access(accounts, context, projects)
        assert result == [{'id': 'acc-2'}]

    def test_internal_sees_all_tasks(self, tasks):
        assert filter_tasks_by_access(tasks, _context(Role.DELIVERY)) == tasks

    def test_client_tasks_follow_projects(self, tasks, projects):
        context = _context(Role.CLIENT_MEMBER, account_id='acc-2')
        result = filter_tasks_by_access(tasks, context, projects)
        assert [t['id'] for t in result] == ['t2']

    def test_vendor_tasks_follow_assignments(self, tasks, projects):
        context = _context(Role.VENDOR, vendor_contact_id='contact-1')
        result = filter_tasks_by_access(tasks, context, projects, assigned_project_ids=['p4'])
        assert [t['id'] for t in result] == ['t1', 't3']

    def test_task_without_project_hidden(self, tasks, projects):
        context = _context(Role.CLIENT_ADMIN, account_id='acc-1')
        result = filter_tasks_by_access(tasks, context, projects)
        assert 't4' not in [t['id'] for t in result]


@pytest.mark.unit
class TestValidators:
    """Tests for single-resource checks"""

    def test_client_account_access(self):
        assert validate_client_account_access('acc-1', 'acc-1') is True
        assert validate_client_account_access('acc-1', 'acc-2') is False
        assert validate_client_account_access('acc-1', None) is False

    def test_vendor_project_access(self, projects):
        assert validate_vendor_project_access('p1', projects, 'contact-1') is True
        assert validate_vendor_project_access('p3', projects, 'contact-1', 'vendor-co-1') is False

    def test_context_defaults(self):
        context = _context(Role.SALES)
        assert context.org_id == DEFAULT_ORG_ID
        assert context.is_internal and not context.is_client and not context.is_vendor
