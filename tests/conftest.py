"""
Shared fixtures: every test gets its own repository and app instance.
"""
import pytest
from fastapi.testclient import TestClient

from userhub.app import create_app
from userhub.modules.config import Settings
from userhub.modules.users.repositories.user_repository import UserRepository


@pytest.fixture
def settings():
    return Settings(rate_limit_max_requests=10_000, cors_origins=["http://localhost:3000"])


@pytest.fixture
def repository():
    return UserRepository()


@pytest.fixture
def app(settings, repository):
    return create_app(settings, repository)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
