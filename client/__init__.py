"""Python client for the ByteFood GraphQL API with transparent token refresh."""
from client.coordinator import RefreshCoordinator
from client.errors import ClientError, GraphQLResponseError, RefreshFailedError, UnauthenticatedError
from client.session import SessionStore, User
from client.transport import GraphQLClient

__all__ = [
    "ClientError",
    "GraphQLClient",
    "GraphQLResponseError",
    "RefreshCoordinator",
    "RefreshFailedError",
    "SessionStore",
    "UnauthenticatedError",
    "User",
]
