"""Shared fixtures: a fresh in-memory database and a testing app per test."""
import os

# Must be set before models/__init__ builds the storage singleton
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("APP_ENV", "test")

import pytest

from api import create_app
from models import storage

PASSWORD = "Password123"


@pytest.fixture
def app():
    storage.drop_all()
    storage.reload()
    app = create_app("testing")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gql(client):
    """POST a GraphQL operation and return the decoded JSON body."""
    def _gql(query, variables=None, token=None, test_client=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = (test_client or client).post(
            "/graphql", json={"query": query, "variables": variables or {}}, headers=headers
        )
        return response.get_json()
    return _gql


@pytest.fixture
def register(gql):
    def _register(email="ann@example.com", password=PASSWORD, name="Ann", test_client=None):
        body = gql(
            """
            mutation($email: String!, $password: String!, $name: String) {
              register(email: $email, password: $password, name: $name) {
                accessToken
                user { id email name avatar }
              }
            }
            """,
            {"email": email, "password": password, "name": name},
            test_client=test_client,
        )
        return body
    return _register


def error_code(body):
    return body["errors"][0]["extensions"]["code"]
