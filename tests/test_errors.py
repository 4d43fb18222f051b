"""Error envelope for GraphQL and REST responses."""
from graphql import GraphQLError

from api.errors import (
    GENERIC_MESSAGE,
    InternalError,
    InvalidCredentialsError,
    UserExistsError,
    ValidationError,
    format_graphql_error,
)


def _wrap(exc):
    return GraphQLError(str(exc), original_error=exc, path=["login"])


def test_app_errors_keep_code_and_message():
    formatted = format_graphql_error(_wrap(UserExistsError()))
    assert formatted["message"] == "User with this email already exists"
    assert formatted["extensions"] == {"code": "USER_EXISTS", "statusCode": 409}
    assert formatted["path"] == ["login"]


def test_validation_error_carries_field():
    formatted = format_graphql_error(_wrap(ValidationError("Invalid email format", field="email")))
    assert formatted["extensions"]["field"] == "email"
    assert formatted["extensions"]["code"] == "VALIDATION_ERROR"


def test_unexpected_errors_are_hidden_in_production():
    formatted = format_graphql_error(_wrap(RuntimeError("connection to db-01 refused")), debug=False)
    assert formatted["message"] == GENERIC_MESSAGE
    assert formatted["extensions"] == {"code": "INTERNAL_ERROR", "statusCode": 500}


def test_not_found_messages_pass_through():
    formatted = format_graphql_error(_wrap(LookupError("Food \"kale\" not found")), debug=False)
    assert formatted["message"] == 'Food "kale" not found'
    assert formatted["extensions"]["code"] == "INTERNAL_ERROR"


def test_debug_adds_details():
    formatted = format_graphql_error(_wrap(RuntimeError("boom")), debug=True)
    assert formatted["message"] == "boom"
    assert formatted["extensions"]["details"]["type"] == "RuntimeError"

    app_error = format_graphql_error(_wrap(InvalidCredentialsError()), debug=True)
    assert app_error["message"] == "Invalid email or password"
    assert "stacktrace" in app_error["extensions"]


def test_query_syntax_error(client):
    response = client.post("/graphql", json={"query": "{ me { "})
    assert response.status_code == 400
    body = response.get_json()
    assert body["errors"][0]["extensions"]["code"] == "GRAPHQL_VALIDATION_FAILED"


def test_non_json_body(client):
    response = client.post("/graphql", data="nope", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["error"] == "BAD_REQUEST"


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.get_json()["database"] == "ok"


def test_unknown_route_envelope(client):
    response = client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.get_json() == {"error": "NOT_FOUND", "message": "Resource not found", "status": 404}


def test_explorer_hidden_outside_debug(client):
    assert client.get("/graphql").status_code == 404


LOGIN = 'mutation { login(email: "ann@example.com", password: "Password123") { accessToken } }'


def _broken_lookup(email):
    raise RuntimeError("connection to db-01 refused")


def test_non_production_responses_carry_details(app, client, monkeypatch):
    from models import storage
    monkeypatch.setattr(storage, "find_user_by_email", _broken_lookup)

    error = client.post("/graphql", json={"query": LOGIN}).get_json()["errors"][0]
    assert error["message"] == "connection to db-01 refused"
    assert error["extensions"]["code"] == InternalError.code
    assert error["extensions"]["details"]["type"] == "RuntimeError"


def test_production_responses_hide_details(app, monkeypatch):
    from api import create_app
    from models import storage
    monkeypatch.setattr(storage, "find_user_by_email", _broken_lookup)

    prod = create_app("production")
    error = prod.test_client().post("/graphql", json={"query": LOGIN}).get_json()["errors"][0]
    assert error["message"] == GENERIC_MESSAGE
    assert error["extensions"] == {"code": "INTERNAL_ERROR", "statusCode": 500}
