"""
Pytest fixtures for Webster backend tests.

Provides test database setup, two owner accounts with bearer headers, and
factories for customers, team members and medications.
"""

from datetime import date

import pytest
from sqlalchemy import text
from webster import create_app
from webster.extensions import db
from webster.services.auth_service import create_user
from webster.services import customer_service, medication_service, team_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def owner_a(db_session):
    """First account."""
    return create_user("owner_a@pharmacy.test", PASSWORD, name="Owner A")


@pytest.fixture(scope='function')
def owner_b(db_session):
    """Second account, used for cross-owner checks."""
    return create_user("owner_b@pharmacy.test", PASSWORD, name="Owner B")


@pytest.fixture(scope='function')
def headers_a(client, owner_a):
    return auth_headers(get_auth_token(client, owner_a.email, PASSWORD))


@pytest.fixture(scope='function')
def headers_b(client, owner_b):
    return auth_headers(get_auth_token(client, owner_b.email, PASSWORD))


@pytest.fixture(scope='function')
def make_customer(db_session):
    """Factory: make_customer(owner, **fields) -> Customer."""
    def _make(owner, **fields):
        payload = {
            "first_name": "Jane",
            "last_name": "Doe",
            "date_of_birth": "1950-03-14",
            "email": "jane.doe@example.com",
            "status": "active",
        }
        payload.update(fields)
        return customer_service.create_customer(owner.id, payload)
    return _make


@pytest.fixture(scope='function')
def make_team_member(db_session):
    """Factory: make_team_member(owner, initials, **fields) -> TeamMember."""
    def _make(owner, initials="JD", **fields):
        payload = {"initials": initials, "full_name": "Jane Doe"}
        payload.update(fields)
        return team_service.create_team_member(owner.id, payload)
    return _make


@pytest.fixture(scope='function')
def make_medication(db_session):
    """Factory: make_medication(owner, customer, frequency, **fields) -> Medication."""
    def _make(owner, customer, frequency=None, **fields):
        payload = {
            "name": "Metformin",
            "form": "tablet",
            "strength": "500mg",
            "start_date": date(2024, 1, 1).isoformat(),
            "frequency": frequency if frequency is not None else {"morning": 1},
        }
        payload.update(fields)
        return medication_service.create_medication(customer.id, owner.id, payload)
    return _make


@pytest.fixture(scope='function')
def failing_inserts(db_session):
    """
    Make INSERTs into a table fail at the database level.

    Returns a callable taking the table name; the trigger is dropped when
    the callable is invoked again with restore=True or at teardown.
    """
    installed = []

    def _install(table: str, restore: bool = False):
        name = f"fail_insert_{table}"
        if restore:
            db_session.execute(text(f"DROP TRIGGER IF EXISTS {name}"))
            db_session.commit()
            installed.remove(name)
            return
        db_session.execute(text(
            f"CREATE TRIGGER {name} BEFORE INSERT ON {table} "
            "BEGIN SELECT RAISE(ABORT, 'disk full'); END"
        ))
        db_session.commit()
        installed.append(name)

    yield _install

    db_session.rollback()
    for name in installed:
        db_session.execute(text(f"DROP TRIGGER IF EXISTS {name}"))
    db_session.commit()


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
