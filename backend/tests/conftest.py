import pytest
from fastapi.testclient import TestClient

from herbal_garden.auth.dependencies import get_clock, get_notifier
from herbal_garden.auth.jwt_handler import TokenService
from herbal_garden.config import Settings
from herbal_garden.core.security import PasswordHasher
from herbal_garden.database import Database, User
from herbal_garden.main import create_app
from tests import FakeClock, RecordingNotifier

TEST_SECRET = "test-secret-key-not-for-production"


@pytest.fixture
def test_settings():
    """Settings isolated from the environment and any .env file"""
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        database_url="sqlite://",
        environment="test",
        bcrypt_rounds=4,
        email_user=None,
        email_pass=None,
        log_level="WARNING",
        cors_origins=["http://localhost:3000"],
    )


@pytest.fixture
def test_database():
    """Fresh in-memory database per test"""
    database = Database("sqlite://")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def test_db(test_database):
    session = test_database.session()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_app(test_settings, test_database, notifier, clock):
    app = create_app(settings=test_settings, database=test_database)
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_clock] = lambda: clock
    return app


@pytest.fixture
def client(test_app):
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def token_service(test_settings):
    return TokenService.from_settings(test_settings)


@pytest.fixture
def hasher(test_settings):
    return PasswordHasher(test_settings.bcrypt_rounds)


@pytest.fixture
def fetch_user(test_database):
    """Read a user row through its own session so committed changes are visible"""

    def fetch(email):
        session = test_database.session()
        try:
            return session.query(User).filter(User.email == email).first()
        finally:
            session.close()

    return fetch


@pytest.fixture
def admin_token(token_service):
    return token_service.issue({"id": 1, "email": "admin@example.com", "role": "admin"})


@pytest.fixture
def student_token(token_service):
    return token_service.issue({"id": 2, "email": "student@example.com", "role": "student"})
