"""
Pytest configuration and shared fixtures
"""
import sys
import pytest
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from space_access import Role, User, SpaceAccessController  # noqa: E402

TEST_PASSWORD = 'correct-horse-battery'

TEST_USERS = {
    'admin': dict(name='Alice Martin', email='alice@agency.test', role='admin'),
    'sales': dict(name='Sam Sales', email='sam@agency.test', role='sales'),
    'finance': dict(name='Fiona Finance', email='fiona@agency.test', role='finance'),
    'client_admin': dict(name='Carla Client', email='carla@client.test', role='client_admin',
                         account_id='acc-1'),
    'client_member': dict(name='Carl Member', email='carl@client.test', role='client_member',
                          account_id='acc-1'),
    'vendor': dict(name='Victor Vendor', email='victor@vendor.test', role='vendor',
                   vendor_contact_id='contact-1', vendor_id='vendor-co-1'),
}


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def users_file(tmp_path):
    """Path of an isolated user store"""
    return str(tmp_path / 'users.json')


@pytest.fixture
def app(app_config, users_file):
    """Flask app wired to an isolated user store"""
    from app_init import create_app
    flask_app = create_app(app_config, USERS_FILE=users_file)

    import auth
    for record in TEST_USERS.values():
        extra = {k: v for k, v in record.items() if k not in ('name', 'email', 'role')}
        auth.create_user(record['name'], record['email'], TEST_PASSWORD, record['role'],
                         users_file=users_file, **extra)

    return flask_app


@pytest.fixture
def client(app):
    """Flask test client"""
    return app.test_client()


@pytest.fixture
def login(client):
    """Log the test client in as one of TEST_USERS"""
    def _login(key):
        response = client.post('/api/auth/login', json={
            'email': TEST_USERS[key]['email'],
            'password': TEST_PASSWORD,
        })
        assert response.status_code == 200, response.get_json()
        return response.get_json()
    return _login


@pytest.fixture
def controller():
    """Controller on the default role -> spaces table"""
    return SpaceAccessController()


@pytest.fixture
def make_user():
    """Factory for in-memory users"""
    def _make(role, **kwargs):
        role_value = role.value if isinstance(role, Role) else role
        return User(
            id=kwargs.pop('id', f'user-{role_value}'),
            name=kwargs.pop('name', f'{role_value} user'),
            email=kwargs.pop('email', f'{role_value}@agency.test'),
            role=Role(role) if role is not None else None,
            **kwargs
        )
    return _make


@pytest.fixture
def test_password():
    return TEST_PASSWORD


@pytest.fixture
def test_users():
    return TEST_USERS
