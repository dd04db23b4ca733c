"""
Redis-backed persistence for resume-state and progress records.

The step function is stateless; whoever drives it keeps the resume-state
between invocations. This store keeps it in Redis, keyed by the client
request token of the provisioning attempt.
"""

import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from targetgroup.schemas.target_group import ProgressRecord, ResumeState

logger = logging.getLogger(__name__)

RESUME_KEY_PREFIX = "targetgroup:resume:"
PROGRESS_KEY_PREFIX = "targetgroup:progress:"


class StateStoreError(Exception):
    """Raised when the resume-state store cannot be read or written."""


class ResumeStateStore:
    """Keeps resume-state and progress records in Redis with a TTL."""

    def __init__(self, redis_client: Redis, ttl_seconds: int = 86400):
        """
        Initialize store.

        Args:
            redis_client: Connected Redis client
            ttl_seconds: Expiry applied to every key written
        """
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    def load(self, token: str) -> Optional[ResumeState]:
        """Return the persisted resume-state for ``token``, if any."""
        raw = self._get(RESUME_KEY_PREFIX + token)
        if raw is None:
            return None
        return ResumeState.model_validate_json(raw)

    def save(self, token: str, state: ResumeState) -> None:
        self._setex(RESUME_KEY_PREFIX + token, state.model_dump_json(by_alias=True))

    def delete(self, token: str) -> None:
        try:
            self.redis.delete(RESUME_KEY_PREFIX + token)
        except RedisError as e:
            logger.error(f"Failed to delete resume-state for {token}: {e}")
            raise StateStoreError(f"Failed to delete resume-state: {e}")

    def load_progress(self, token: str) -> Optional[ProgressRecord]:
        raw = self._get(PROGRESS_KEY_PREFIX + token)
        if raw is None:
            return None
        return ProgressRecord.model_validate_json(raw)

    def save_progress(self, record: ProgressRecord) -> None:
        self._setex(
            PROGRESS_KEY_PREFIX + record.client_request_token,
            record.model_dump_json(by_alias=True),
        )

    def _get(self, key: str) -> Optional[str]:
        try:
            raw = self.redis.get(key)
        except RedisError as e:
            logger.error(f"Failed to read {key}: {e}")
            raise StateStoreError(f"Failed to read {key}: {e}")
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return raw

    def _setex(self, key: str, value: str) -> None:
        try:
            self.redis.setex(key, self.ttl_seconds, value)
        except RedisError as e:
            logger.error(f"Failed to write {key}: {e}")
            raise StateStoreError(f"Failed to write {key}: {e}")
