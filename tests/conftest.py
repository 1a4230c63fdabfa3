"""Shared fixtures: an app on in-memory SQLite with one user in the database."""

import pytest

from app import create_app
from models import db
from models.user import User
from security.auth_log import AuthLogIdentity, AuthLogSettings
from security.password import hash_password

TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test-secret",
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "BCRYPT_ROUNDS": 4,
    "AUTH_LOG_GC_PROBABILITY": 0,
}


def make_user(username: str = "test_name", password: str = "test_password") -> User:
    user = User(username=username, password_hash=hash_password(password))
    db.session.add(user)
    db.session.commit()
    return user


def make_tracker(user: User, **settings) -> AuthLogIdentity:
    settings.setdefault("gc_probability", 0)
    return AuthLogIdentity(user, settings=AuthLogSettings(**settings))


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app) -> User:
    return make_user()
