"""
In-memory session for one client process: the signed-in user and their access token.

Both fields are set together by set_auth() and cleared together by logout();
nothing else writes them and nothing here touches the network.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            email=data["email"],
            name=data.get("name"),
            avatar=data.get("avatar"),
        )


class SessionStore:
    def __init__(self):
        self._user: Optional[User] = None
        self._access_token: Optional[str] = None

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    def set_auth(self, user: User, access_token: str) -> None:
        if user is None or not access_token:
            raise ValueError("set_auth needs both a user and an access token")
        self._user, self._access_token = user, access_token

    def logout(self) -> None:
        self._user, self._access_token = None, None

    def __repr__(self):
        email = self._user.email if self._user else None
        return f"<SessionStore user={email} authenticated={self.is_authenticated}>"
