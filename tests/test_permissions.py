"""
Tests for the permission matrix
"""
import pytest

from permissions import (
    ACTIONS,
    PERMISSIONS_MATRIX,
    RESOURCES,
    can_access_resource,
    get_role_permissions,
    has_permission,
    permission_required,
)
from space_access import InvalidRoleError, Role


@pytest.mark.unit
class TestPermissionMatrix:
    """Tests for matrix lookups"""

    def test_every_role_has_an_entry(self):
        assert set(PERMISSIONS_MATRIX) == set(Role)

    def test_only_known_resources_and_actions(self):
        for grants_by_resource in PERMISSIONS_MATRIX.values():
            assert set(grants_by_resource) <= set(RESOURCES)
            for grants in grants_by_resource.values():
                assert set(grants) <= set(ACTIONS)

    @pytest.mark.parametrize('resource', RESOURCES)
    def test_admin_can_delete_everything(self, resource):
        assert has_permission(Role.ADMIN, resource, 'delete') is True

    def test_sales_cannot_delete_projects(self):
        assert has_permission('sales', 'project', 'delete') is False
        assert has_permission('sales', 'deal', 'delete') is True

    def test_finance_manages_invoices(self):
        assert has_permission(Role.FINANCE, 'invoice', 'create') is True
        assert has_permission(Role.FINANCE, 'task', 'create') is False

    def test_vendor_uploads_deliverables_but_cannot_delete(self):
        assert has_permission(Role.VENDOR, 'deliverable', 'upload') is True
        assert has_permission(Role.VENDOR, 'deliverable', 'delete') is False

    def test_vendor_can_update_task_status(self):
        assert has_permission(Role.VENDOR, 'task', 'update') is True
        assert has_permission(Role.VENDOR, 'task', 'create') is False

    def test_client_member_comments_only(self):
        assert has_permission(Role.CLIENT_MEMBER, 'comment', 'create') is True
        assert has_permission(Role.CLIENT_MEMBER, 'comment', 'update') is False

    def test_missing_action_is_denied(self):
        assert has_permission(Role.ADMIN, 'invoice', 'upload') is False

    def test_unknown_resource_is_denied(self):
        assert has_permission(Role.ADMIN, 'spaceship', 'view') is False

    def test_no_role_is_denied(self):
        assert has_permission(None, 'project', 'view') is False

    def test_unknown_role_raises(self):
        with pytest.raises(InvalidRoleError):
            has_permission('intern', 'project', 'view')

    def test_can_access_resource(self):
        assert can_access_resource(Role.VENDOR, 'invoice') is True
        assert can_access_resource(Role.VENDOR, 'deal') is False
        assert can_access_resource(Role.CLIENT_ADMIN, 'vendor') is False
        assert can_access_resource(Role.CLIENT_ADMIN, 'nothing') is False

    def test_get_role_permissions_is_a_copy(self):
        grants = get_role_permissions(Role.SALES)
        grants['project']['delete'] = True
        assert has_permission(Role.SALES, 'project', 'delete') is False

    def test_get_role_permissions_without_role(self):
        assert get_role_permissions(None) == {}


@pytest.mark.integration
class TestPermissionRequired:
    """Tests for the permission_required decorator"""

    @pytest.fixture
    def guarded_app(self, app):
        @app.route('/api/test/invoices', methods=['POST'])
        @permission_required('invoice', 'create')
        def create_invoice():
            return {'success': True}, 201

        return app

    def test_requires_authentication(self, guarded_app, client):
        response = client.post('/api/test/invoices')
        assert response.status_code == 401

    def test_allows_granted_role(self, guarded_app, client, login):
        login('finance')
        response = client.post('/api/test/invoices')
        assert response.status_code == 201

    def test_denies_other_roles(self, guarded_app, client, login):
        login('sales')
        response = client.post('/api/test/invoices')
        data = response.get_json()

        assert response.status_code == 403
        assert data['required'] == {'resource': 'invoice', 'action': 'create'}
        assert data['role'] == 'sales'
