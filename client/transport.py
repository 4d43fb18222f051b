"""
Async GraphQL client for the ByteFood API (httpx).

Two httpx clients share one cookie jar:
- the API client, whose request hook attaches the session's bearer token and
  whose calls go through the RefreshCoordinator
- the refresh client, with no hook and no coordinator, used only for the
  refreshToken mutation so a failing refresh cannot trigger another refresh
"""
from __future__ import annotations

import logging
from http.cookiejar import CookieJar
from typing import Any, Dict, Optional

import httpx

from client import operations
from client.coordinator import RefreshCoordinator
from client.errors import GraphQLResponseError, RefreshFailedError, UnauthenticatedError
from client.session import SessionStore, User

logger = logging.getLogger(__name__)

UNAUTHENTICATED = "UNAUTHENTICATED"


def _sent_token(request: httpx.Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):] or None
    return None


def parse_response(response: httpx.Response) -> Optional[Dict[str, Any]]:
    """
    Return the "data" member of a GraphQL response or raise:
    UnauthenticatedError for 401 / UNAUTHENTICATED, GraphQLResponseError for
    other GraphQL errors, httpx.HTTPStatusError for non-GraphQL failures.
    """
    token = _sent_token(response.request)
    if response.status_code == 401:
        raise UnauthenticatedError("HTTP 401", token=token)

    try:
        payload = response.json()
    except ValueError:
        response.raise_for_status()
        raise GraphQLResponseError("Response is not JSON")

    errors = payload.get("errors") or []
    for error in errors:
        if (error.get("extensions") or {}).get("code") == UNAUTHENTICATED:
            raise UnauthenticatedError(error.get("message", "Authentication required"), token=token)
    if errors:
        raise GraphQLResponseError.from_error(errors[0])

    response.raise_for_status()
    return payload.get("data")


class GraphQLClient:
    def __init__(
        self,
        url: str,
        session: Optional[SessionStore] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        max_refresh_attempts: Optional[int] = None,
    ):
        self.url = url
        self.session = session or SessionStore()
        # a plain CookieJar is shared as-is; httpx.Cookies would be copied
        jar = CookieJar()
        self._http = httpx.AsyncClient(
            cookies=jar,
            transport=transport,
            timeout=timeout,
            event_hooks={"request": [self._attach_token]},
        )
        self._refresh_http = httpx.AsyncClient(cookies=jar, transport=transport, timeout=timeout)
        self.coordinator = RefreshCoordinator(self.session, self._refresh, max_refresh_attempts)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()
        await self._refresh_http.aclose()

    async def _attach_token(self, request: httpx.Request) -> None:
        # replays carry their token explicitly; everything else gets the session's
        if "Authorization" not in request.headers:
            token = self.session.access_token
            if token:
                request.headers["Authorization"] = f"Bearer {token}"

    async def _post(self, query: str, variables: Optional[Dict[str, Any]] = None, token: Optional[str] = None):
        headers = {"Authorization": f"Bearer {token}"} if token else None
        response = await self._http.post(self.url, json={"query": query, "variables": variables or {}}, headers=headers)
        return parse_response(response)

    async def _refresh(self):
        try:
            response = await self._refresh_http.post(self.url, json={"query": operations.REFRESH_TOKEN_MUTATION})
            data = parse_response(response)
        except (GraphQLResponseError, UnauthenticatedError, httpx.HTTPError) as exc:
            raise RefreshFailedError(str(exc)) from exc

        payload = (data or {}).get("refreshToken") or {}
        token, user = payload.get("accessToken"), payload.get("user")
        if not token or not user:
            raise RefreshFailedError("Refresh failed")
        logger.debug("Access token refreshed for user %s", user.get("id"))
        return User.from_dict(user), token

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Run an operation, refreshing the access token once per auth failure."""
        return await self.coordinator.run_with_refresh(lambda token: self._post(query, variables, token))

    async def _authenticate(self, query: str, variables: Dict[str, Any], field: str) -> User:
        data = await self._post(query, variables)
        payload = data[field]
        user = User.from_dict(payload["user"])
        self.session.set_auth(user, payload["accessToken"])
        return user

    async def login(self, email: str, password: str) -> User:
        return await self._authenticate(operations.LOGIN_MUTATION, {"email": email, "password": password}, "login")

    async def register(self, email: str, password: str, name: Optional[str] = None) -> User:
        variables = {"email": email, "password": password, "name": name}
        return await self._authenticate(operations.REGISTER_MUTATION, variables, "register")

    async def login_with_google(self, id_token: str) -> User:
        return await self._authenticate(operations.GOOGLE_AUTH_MUTATION, {"idToken": id_token}, "authWithGoogle")

    async def me(self) -> Optional[User]:
        data = await self.execute(operations.GET_ME)
        me = (data or {}).get("me")
        return User.from_dict(me) if me else None

    async def logout(self) -> None:
        """Drop the server session; the local session is cleared even if the call fails."""
        try:
            await self._refresh_http.post(self.url, json={"query": operations.LOGOUT_MUTATION})
        finally:
            self.session.logout()

    async def logout_all(self) -> None:
        try:
            await self.execute(operations.LOGOUT_ALL_MUTATION)
        finally:
            self.session.logout()
