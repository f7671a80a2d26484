import json
import logging
import secrets
from dataclasses import dataclass, asdict
from typing import Optional

import redis

logger = logging.getLogger(__name__)


@dataclass
class Principal:
    """Who is calling and which group they act for."""
    user_id: int
    tenant_id: int
    role: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, json_str: str) -> "Principal":
        data = json.loads(json_str)
        return cls(
            user_id=int(data['user_id']),
            tenant_id=int(data['tenant_id']),
            role=data['role']
        )


class SessionStore:
    """
    Bearer tokens kept in Redis with a TTL.
    Each successful lookup slides the expiry forward.
    """

    KEY_PREFIX = "session:"

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = 12 * 3600):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    def create(self, principal: Principal) -> str:
        token = secrets.token_urlsafe(32)
        self.redis.setex(self._key(token), self.ttl_seconds, principal.to_json())
        logger.info("Opened session for user %s (tenant %s)", principal.user_id, principal.tenant_id)
        return token

    def resolve(self, token: str) -> Optional[Principal]:
        if not token:
            return None

        raw = self.redis.get(self._key(token))
        if raw is None:
            return None

        try:
            principal = Principal.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping malformed session entry")
            self.redis.delete(self._key(token))
            return None

        self.redis.expire(self._key(token), self.ttl_seconds)
        return principal

    def revoke(self, token: str) -> bool:
        if not token:
            return False
        return bool(self.redis.delete(self._key(token)))
