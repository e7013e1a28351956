"""
SnapPDF Backend - Session Token Store
=======================================

What:  Issues, validates and revokes opaque bearer tokens backed by Redis.
How:   Each token is a `secrets.token_urlsafe(32)` string. Redis holds
       `session:<token>` → SessionSnapshot JSON with a fixed TTL set at issue
       time. Reads never touch the TTL, so a session lasts exactly
       `session_ttl_seconds` from login no matter how often it is used.
Who:   Auth routes (issue, revoke) and the bearer dependency (validate).

Token states:
    issued → valid → expired (TTL elapsed) | revoked (logout)

    validate() cannot tell expired from revoked from never-issued: all three
    return None.
"""

import logging
import secrets
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from snappdf.exceptions import UpstreamUnavailableError
from snappdf.schemas.auth import SessionSnapshot

logger = logging.getLogger(__name__)

KEY_PREFIX = "session:"


def session_key(token: str) -> str:
    return f"{KEY_PREFIX}{token}"


class SessionTokenStore:
    """
    Redis-backed session token store.

    Raises UpstreamUnavailableError (HTTP 503) whenever Redis cannot be
    reached; callers never see raw redis exceptions.
    """

    def __init__(self, redis: Redis, ttl_seconds: int):
        self._redis = redis
        self.ttl_seconds = ttl_seconds

    async def issue(self, snapshot: SessionSnapshot) -> str:
        """Store `snapshot` under a fresh token and return the token."""
        token = secrets.token_urlsafe(32)
        try:
            await self._redis.set(
                session_key(token),
                snapshot.model_dump_json(),
                ex=self.ttl_seconds,
            )
        except RedisError as e:
            logger.error("Failed to issue session token for %s: %s", snapshot.email, str(e))
            raise UpstreamUnavailableError(
                message="Service unavailable: Session store connection error",
                context={"action": "issue"},
            )

        logger.info("Issued session token for %s (ttl=%ds)", snapshot.email, self.ttl_seconds)
        return token

    async def validate(self, token: str) -> Optional[SessionSnapshot]:
        """
        Look up the snapshot stored under `token`.

        Returns:
            The snapshot exactly as issued, or None if the token is unknown,
            expired or revoked.
        """
        try:
            raw = await self._redis.get(session_key(token))
        except RedisError as e:
            logger.error("Failed to validate session token: %s", str(e))
            raise UpstreamUnavailableError(
                message="Service unavailable: Session store connection error",
                context={"action": "validate"},
            )

        if raw is None:
            return None

        try:
            return SessionSnapshot.model_validate_json(raw)
        except PydanticValidationError:
            # A value that is not a snapshot is treated as an unknown token
            logger.warning("Discarding malformed session value for a presented token")
            return None

    async def revoke(self, token: str) -> None:
        """Delete `token`. Revoking an unknown token is a no-op."""
        try:
            deleted = await self._redis.delete(session_key(token))
        except RedisError as e:
            logger.error("Failed to revoke session token: %s", str(e))
            raise UpstreamUnavailableError(
                message="Service unavailable: Session store connection error",
                context={"action": "revoke"},
            )
        logger.info("Revoked session token (existed=%s)", bool(deleted))
