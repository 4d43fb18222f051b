"""
Single-flight access-token refresh.

Every request goes through RefreshCoordinator.run_with_refresh(). When a request
is rejected as unauthenticated, at most one refresh call is in flight at a time:
the first failure starts it, later failures wait in a FIFO queue, and everyone
replays with the token the refresh produced. Queued requests replay in the order
they failed, and the request that started the refresh replays last.

The is_refreshing flag is a plain attribute, not a lock. That is only sound on a
single asyncio event loop, where nothing else runs between two awaits.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple

from client.errors import RefreshFailedError, UnauthenticatedError
from client.session import SessionStore, User

logger = logging.getLogger(__name__)

# send(token) performs one attempt; token None means "whatever the session holds"
Send = Callable[[Optional[str]], Awaitable[Any]]
Refresh = Callable[[], Awaitable[Tuple[User, str]]]


class RefreshCoordinator:
    def __init__(self, session: SessionStore, refresh: Refresh, max_refresh_attempts: Optional[int] = None):
        """
        refresh performs the refresh network call and returns (user, access_token).
        It must not itself go through this coordinator.
        max_refresh_attempts caps refresh cycles per request; None means no cap.
        """
        self._session = session
        self._refresh = refresh
        self._max_refresh_attempts = max_refresh_attempts
        self._is_refreshing = False
        self._pending: Deque[asyncio.Future] = deque()

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def run_with_refresh(self, send: Send) -> Any:
        token: Optional[str] = None
        attempts = 0
        while True:
            try:
                return await send(token)
            except UnauthenticatedError as exc:
                current = self._session.access_token
                if current is not None and current != exc.token:
                    # rejected token is already stale: a refresh finished meanwhile
                    token = current
                    continue
                if self._max_refresh_attempts is not None and attempts >= self._max_refresh_attempts:
                    raise
                attempts += 1
                token = await self._wait_for_token()

    async def _wait_for_token(self) -> str:
        if self._is_refreshing:
            future = asyncio.get_running_loop().create_future()
            self._pending.append(future)
            return await future

        self._is_refreshing = True
        try:
            try:
                user, token = await self._refresh()
            except asyncio.CancelledError:
                self._drain(error=RefreshFailedError("Token refresh was cancelled"))
                raise
            except Exception as exc:
                logger.info("Token refresh failed: %s", exc)
                self._drain(error=exc)
                self._session.logout()
                raise
            self._session.set_auth(user, token)
            self._drain(token=token)
        finally:
            self._is_refreshing = False
        # one loop pass lets the queued requests replay ahead of the one that refreshed
        await asyncio.sleep(0)
        return token

    def _drain(self, token: Optional[str] = None, error: Optional[BaseException] = None) -> None:
        while self._pending:
            future = self._pending.popleft()
            if future.done():
                continue
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(token)
