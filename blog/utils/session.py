"""
Session storage

A session id (the value of the session cookie) maps to the signed-in user's
``{user_id, email, role, created_at}``. Sessions slide: every successful
read pushes the expiry out by ``expire_seconds``. Each user's session ids are
indexed so a ban can end all of them at once.

Redis is used when ``REDIS_URL`` is configured and reachable; otherwise the
process keeps sessions in memory, which does not survive restarts and is not
shared between workers.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

import redis.asyncio as redis
from fastapi import Request

from blog.utils.dates import utcnow

logger = logging.getLogger(__name__)


def session_key(session_id: str) -> str:
    return f"session:{session_id}"


def user_sessions_key(user_id: int) -> str:
    return f"user_sessions:{user_id}"


def new_session(user_id: int, email: str, role: str) -> tuple[str, dict[str, Any]]:
    """A fresh session id and its payload."""
    payload = {
        "user_id": user_id,
        "email": email,
        "role": role,
        "created_at": utcnow().isoformat(),
    }
    return uuid.uuid4().hex, payload


@dataclass
class _StoredSession:
    payload: dict[str, Any]
    expires_at: datetime


class InMemorySessionManager:
    """Process-local session store."""

    def __init__(self, expire_seconds: int):
        self.expire_seconds = expire_seconds
        self._sessions: dict[str, _StoredSession] = {}
        self._by_user: dict[int, set[str]] = {}

    def _expiry(self) -> datetime:
        return utcnow() + timedelta(seconds=self.expire_seconds)

    def _drop(self, session_id: str) -> bool:
        stored = self._sessions.pop(session_id, None)
        if stored is None:
            return False
        user_id = stored.payload["user_id"]
        owned = self._by_user.get(user_id)
        if owned is not None:
            owned.discard(session_id)
            if not owned:
                del self._by_user[user_id]
        return True

    def _purge_expired(self) -> None:
        now = utcnow()
        for session_id in [sid for sid, stored in self._sessions.items() if stored.expires_at <= now]:
            self._drop(session_id)

    async def connect(self) -> None:
        logger.info("Sessions are kept in memory")

    async def disconnect(self) -> None:
        self._sessions.clear()
        self._by_user.clear()

    async def create_session(self, user_id: int, user_email: str, user_role: str) -> str:
        self._purge_expired()
        session_id, payload = new_session(user_id, user_email, user_role)
        self._sessions[session_id] = _StoredSession(payload, self._expiry())
        self._by_user.setdefault(user_id, set()).add(session_id)
        logger.info(f"Session opened for user {user_id}")
        return session_id

    async def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        self._purge_expired()
        stored = self._sessions.get(session_id)
        if stored is None:
            return None
        stored.expires_at = self._expiry()
        return dict(stored.payload)

    async def delete_session(self, session_id: str) -> bool:
        return self._drop(session_id)

    async def delete_all_user_sessions(self, user_id: int) -> int:
        session_ids = self._by_user.pop(user_id, set())
        for session_id in session_ids:
            self._sessions.pop(session_id, None)
        logger.info(f"Ended {len(session_ids)} session(s) for user {user_id}")
        return len(session_ids)


class RedisSessionManager:
    """
    Redis-backed session store.

    Keys:
        session:<id>           JSON payload with a TTL of expire_seconds
        user_sessions:<uid>    set of the user's session ids
    """

    def __init__(self, redis_url: str, expire_seconds: int):
        self.redis_url = redis_url
        self.expire_seconds = expire_seconds
        self._redis: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._redis is None:
            raise RuntimeError("RedisSessionManager used before connect()")
        return self._redis

    async def connect(self) -> None:
        if self._redis is not None:
            return
        client = redis.Redis.from_url(self.redis_url, decode_responses=True)
        try:
            await client.ping()
        except redis.RedisError:
            await client.aclose()
            raise
        self._redis = client
        logger.info("Connected to Redis for sessions")

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    async def create_session(self, user_id: int, user_email: str, user_role: str) -> str:
        session_id, payload = new_session(user_id, user_email, user_role)
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.setex(session_key(session_id), self.expire_seconds, json.dumps(payload))
            pipe.sadd(user_sessions_key(user_id), session_id)
            pipe.expire(user_sessions_key(user_id), self.expire_seconds)
            await pipe.execute()
        logger.info(f"Session opened for user {user_id}")
        return session_id

    async def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        raw = await self.client.get(session_key(session_id))
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Discarding unreadable session {session_id}")
            await self.client.delete(session_key(session_id))
            return None
        # The user index lives at least as long as any session it lists
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.expire(session_key(session_id), self.expire_seconds)
            pipe.expire(user_sessions_key(payload["user_id"]), self.expire_seconds)
            await pipe.execute()
        return payload

    async def delete_session(self, session_id: str) -> bool:
        payload = await self.get_session(session_id)
        if payload is None:
            return False
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.delete(session_key(session_id))
            pipe.srem(user_sessions_key(payload["user_id"]), session_id)
            await pipe.execute()
        return True

    async def delete_all_user_sessions(self, user_id: int) -> int:
        session_ids = await self.client.smembers(user_sessions_key(user_id))
        ended = 0
        if session_ids:
            ended = await self.client.delete(*(session_key(sid) for sid in session_ids))
        await self.client.delete(user_sessions_key(user_id))
        logger.info(f"Ended {ended} session(s) for user {user_id}")
        return ended


SessionManager = RedisSessionManager | InMemorySessionManager


async def create_session_manager(settings) -> SessionManager:
    """Redis when configured and reachable, in-memory otherwise."""
    if settings.redis_url:
        manager = RedisSessionManager(settings.redis_url, settings.session_expire_seconds)
        try:
            await manager.connect()
            return manager
        except (redis.RedisError, OSError) as e:
            logger.warning(f"Redis unavailable ({e}); falling back to in-memory sessions")

    manager = InMemorySessionManager(settings.session_expire_seconds)
    await manager.connect()
    return manager


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions
