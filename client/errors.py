from __future__ import annotations

from typing import Any, Dict, Optional


class ClientError(Exception):
    """Base class for errors raised by the ByteFood client."""


class GraphQLResponseError(ClientError):
    """The server answered with a GraphQL error other than UNAUTHENTICATED."""

    def __init__(self, message: str, code: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.field = field

    @classmethod
    def from_error(cls, error: Dict[str, Any]) -> "GraphQLResponseError":
        ext = error.get("extensions") or {}
        return cls(error.get("message", "GraphQL error"), code=ext.get("code"), field=ext.get("field"))


class UnauthenticatedError(ClientError):
    """
    The request was rejected for missing or expired credentials
    (HTTP 401 or a GraphQL error coded UNAUTHENTICATED).
    token is the access token the rejected request carried, if any.
    """

    def __init__(self, message: str = "Authentication required", token: Optional[str] = None):
        super().__init__(message)
        self.token = token


class RefreshFailedError(ClientError):
    """The refresh call could not produce a new access token; the session was cleared."""
