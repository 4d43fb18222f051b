"""GraphQLClient against a mocked API: bearer hook, 401 detection, cookie-based refresh."""
import asyncio
import json

import httpx
import pytest

from client import GraphQLClient, GraphQLResponseError, RefreshFailedError, SessionStore, User
from client import operations

API = "https://api.example.org/graphql"
USER = {"id": "u1", "email": "ann@example.com", "name": "Ann", "avatar": None}


def _error(message, code):
    return {"data": None, "errors": [{"message": message, "extensions": {"code": code}}]}


class MockAPI:
    """
    Minimal stand-in for the server. Access tokens in `valid` are accepted;
    refreshToken needs the rt-1 cookie and is held until `release` is set.
    """

    def __init__(self, reject_with_401=False):
        self.valid = set()
        self.reject_with_401 = reject_with_401
        self.refresh_calls = 0
        self.refresh_headers = []
        self.me_auth = []
        self.release = asyncio.Event()
        self.release.set()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        auth = request.headers.get("authorization")
        await asyncio.sleep(0)

        if "mutation RefreshToken" in query:
            self.refresh_calls += 1
            self.refresh_headers.append(dict(request.headers))
            await self.release.wait()
            if "refreshToken=rt-1" not in request.headers.get("cookie", ""):
                return httpx.Response(200, json=_error("Refresh token not found", "INVALID_CREDENTIALS"))
            self.valid = {"access-2"}
            return httpx.Response(
                200,
                json={"data": {"refreshToken": {"accessToken": "access-2", "user": USER}}},
                headers={"set-cookie": "refreshToken=rt-2; Path=/; HttpOnly; SameSite=Lax"},
            )

        if "mutation Login" in query:
            variables = json.loads(request.content)["variables"]
            if variables["password"] != "Password123":
                return httpx.Response(200, json=_error("Invalid email or password", "INVALID_CREDENTIALS"))
            self.valid = {"access-1"}
            return httpx.Response(
                200,
                json={"data": {"login": {"accessToken": "access-1", "user": USER}}},
                headers={"set-cookie": "refreshToken=rt-1; Path=/; HttpOnly; SameSite=Lax"},
            )

        if "mutation Logout" in query:
            return httpx.Response(200, json={"data": {"logout": True}})

        if "query GetMe" in query:
            self.me_auth.append(auth)
            token = auth[len("Bearer "):] if auth else None
            if token not in self.valid:
                if self.reject_with_401:
                    return httpx.Response(401, json={"message": "Unauthorized"})
                return httpx.Response(200, json=_error("Authentication required", "UNAUTHENTICATED"))
            return httpx.Response(200, json={"data": {"me": USER}})

        return httpx.Response(400, json=_error("Unknown operation", "GRAPHQL_VALIDATION_FAILED"))


def run(coro_factory, api):
    async def scenario():
        async with GraphQLClient(API, transport=httpx.MockTransport(api)) as client:
            return await coro_factory(client)
    return asyncio.run(scenario())


def test_login_stores_session_and_attaches_bearer():
    api = MockAPI()

    async def flow(client):
        user = await client.login("ann@example.com", "Password123")
        me = await client.me()
        return client.session, user, me

    session, user, me = run(flow, api)
    assert user == User(id="u1", email="ann@example.com", name="Ann")
    assert me == user
    assert session.access_token == "access-1"
    assert api.me_auth == ["Bearer access-1"]
    assert api.refresh_calls == 0


def test_anonymous_request_has_no_bearer():
    api = MockAPI()

    async def flow(client):
        with pytest.raises(RefreshFailedError):
            await client.me()
        return client.session

    session = run(flow, api)
    assert api.me_auth == [None]
    assert session.access_token is None


@pytest.mark.parametrize("reject_with_401", [False, True])
def test_expired_token_is_refreshed_with_cookie(reject_with_401):
    api = MockAPI(reject_with_401=reject_with_401)

    async def flow(client):
        await client.login("ann@example.com", "Password123")
        api.valid = set()  # access-1 expires
        me = await client.me()
        return client.session, me

    session, me = run(flow, api)
    assert me.email == "ann@example.com"
    assert api.refresh_calls == 1
    assert api.me_auth == ["Bearer access-1", "Bearer access-2"]
    assert session.access_token == "access-2"
    # refresh goes out on the hook-free client: cookie, no bearer
    assert "authorization" not in api.refresh_headers[0]
    assert "refreshToken=rt-1" in api.refresh_headers[0]["cookie"]


def test_concurrent_requests_trigger_single_refresh():
    api = MockAPI()

    async def flow(client):
        await client.login("ann@example.com", "Password123")
        api.valid = set()
        api.release.clear()
        tasks = [asyncio.create_task(client.me()) for _ in range(5)]
        while client.coordinator.pending_count < 4:
            await asyncio.sleep(0)
        api.release.set()
        return await asyncio.gather(*tasks)

    results = run(flow, api)
    assert api.refresh_calls == 1
    assert all(r.id == "u1" for r in results)
    assert api.me_auth.count("Bearer access-2") == 5


def test_refresh_failure_clears_session():
    api = MockAPI()

    async def flow(client):
        # token but no refresh cookie, e.g. restored from elsewhere
        client.session.set_auth(User(**USER), "access-1")
        with pytest.raises(RefreshFailedError) as info:
            await client.me()
        return client.session, info.value

    session, error = run(flow, api)
    assert "Refresh token not found" in str(error)
    assert session.access_token is None
    assert session.user is None


def test_other_graphql_errors_pass_through():
    api = MockAPI()

    async def flow(client):
        with pytest.raises(GraphQLResponseError) as info:
            await client.login("ann@example.com", "wrong")
        return info.value

    error = run(flow, api)
    assert error.code == "INVALID_CREDENTIALS"
    assert error.message == "Invalid email or password"
    assert api.refresh_calls == 0


def test_logout_clears_session_even_when_server_is_down():
    def handler(request):
        if "mutation Logout" in json.loads(request.content)["query"]:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"data": {}})

    async def scenario():
        session = SessionStore()
        session.set_auth(User(**USER), "access-1")
        async with GraphQLClient(API, session=session, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.ConnectError):
                await client.logout()
        return session

    assert asyncio.run(scenario()).access_token is None


def test_refresh_document_requests_token_and_user():
    assert "refreshToken" in operations.REFRESH_TOKEN_MUTATION
    assert "accessToken" in operations.REFRESH_TOKEN_MUTATION
