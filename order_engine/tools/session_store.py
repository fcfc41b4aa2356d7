"""
Session persistence keyed by chat user.

Sessions are stored whole as JSON under ``session:<user_id>`` with a
rolling TTL refreshed on every write. Reads never fail: a missing,
expired, unparseable or unreachable entry comes back as a fresh idle
session.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError
from redis import exceptions as redis_ex
import redis.asyncio as redis_async

from order_engine.schemas.session_schema import Session

logger = logging.getLogger(__name__)


def session_key(user_id: str) -> str:
    return f"session:{user_id}"


def decode_session(raw: Optional[Union[str, bytes]]) -> Session:
    """Parse a stored session, falling back to defaults when it can't be read."""
    if not raw:
        return Session()
    try:
        return Session.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Discarding unreadable session payload: %s", exc.errors()[:1])
        return Session()


class SessionStore(ABC):
    """Key-value persistence for order sessions."""

    @abstractmethod
    async def get(self, user_id: str) -> Session:
        """Return the stored session or a fresh default one. Never raises."""

    @abstractmethod
    async def set(self, user_id: str, session: Session, ttl_seconds: int) -> None:
        """Store the whole session, restarting its expiry."""

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Forget the user's session."""


class MemorySessionStore(SessionStore):
    """Process-local store for tests and the console demo."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[str, float]] = {}
        self._clock = clock

    async def get(self, user_id: str) -> Session:
        entry = self._entries.get(session_key(user_id))
        if entry is None:
            return Session()
        raw, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[session_key(user_id)]
            return Session()
        return decode_session(raw)

    async def set(self, user_id: str, session: Session, ttl_seconds: int) -> None:
        self._entries[session_key(user_id)] = (
            session.model_dump_json(),
            self._clock() + ttl_seconds,
        )

    async def delete(self, user_id: str) -> None:
        self._entries.pop(session_key(user_id), None)

    def put_raw(self, user_id: str, raw: str, ttl_seconds: int = 3600) -> None:
        """Seed a raw payload, e.g. one written by an older deployment."""
        self._entries[session_key(user_id)] = (raw, self._clock() + ttl_seconds)


class RedisSessionStore(SessionStore):
    """Redis-backed store. Connection problems degrade to logged soft failures."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisSessionStore":
        return cls(redis_async.from_url(url, decode_responses=True))

    async def get(self, user_id: str) -> Session:
        try:
            raw = await self._client.get(session_key(user_id))
        except redis_ex.RedisError as exc:
            logger.error("Session read failed for %s, starting fresh: %s", user_id, exc)
            return Session()
        return decode_session(raw)

    async def set(self, user_id: str, session: Session, ttl_seconds: int) -> None:
        try:
            await self._client.set(session_key(user_id), session.model_dump_json(), ex=ttl_seconds)
        except redis_ex.RedisError as exc:
            logger.error("Session write failed for %s: %s", user_id, exc)

    async def delete(self, user_id: str) -> None:
        try:
            await self._client.delete(session_key(user_id))
        except redis_ex.RedisError as exc:
            logger.error("Session delete failed for %s: %s", user_id, exc)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis_ex.RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()
