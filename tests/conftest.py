"""Shared fixtures for the Inkpost test suite."""

import pytest
from fastapi.testclient import TestClient

from inkpost.api.common.auth import RequestContext
from inkpost.api.graphql import create_graphql_server
from inkpost.api.rest import create_app
from inkpost.config import Settings
from inkpost.core import BlogService
from inkpost.storage import InMemoryDocumentStore

TEST_SECRET = "test-signing-secret"


@pytest.fixture
def settings():
    """Settings with a test secret and cheap password hashing."""
    return Settings(jwt_secret=TEST_SECRET, password_iterations=1000)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def service(settings, store):
    return BlogService.create(settings, store)


@pytest.fixture
def rest_client(settings, service):
    """In-process TestClient for the REST app."""
    with TestClient(create_app(settings, service=service)) as client:
        yield client


@pytest.fixture
def graphql_client(settings, service):
    """In-process TestClient for the GraphQL server."""
    server = create_graphql_server(settings, service=service)
    with TestClient(server.app) as client:
        yield client


@pytest.fixture
def context_for(service):
    """Build a RequestContext for a user id, carrying a real token."""

    def make(user_id: str) -> RequestContext:
        return RequestContext(user_id=user_id, token=service.token_service.issue(user_id))

    return make
