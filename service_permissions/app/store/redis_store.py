"""
Redis store for permission assignments.
"""

import json
from typing import Optional

import redis.asyncio as redis
from shared.logging import get_logger
from shared.errors import StoreError

from ..permissions.models import (
    PermissionAssignment, assignment_from_document, assignment_to_document
)


class AssignmentStore:
    """Permission assignments kept as JSON documents in Redis."""

    ASSIGNMENT_PREFIX = "assignment:"

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.logger = get_logger("permissions.store.redis")
        self.redis: Optional[redis.Redis] = None

    async def start(self):
        """Connect to Redis."""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

            await self.redis.ping()

            self.logger.info("Assignment store started")

        except Exception as e:
            self.logger.error("Failed to start assignment store", error=str(e))
            raise StoreError(f"Could not connect to Redis: {e}")

    async def stop(self):
        """Close the Redis connection."""
        if self.redis:
            await self.redis.close()
            self.logger.info("Assignment store stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise StoreError("Assignment store is not started")
        return self.redis

    def _key(self, user_id: str) -> str:
        return f"{self.ASSIGNMENT_PREFIX}{user_id}"

    async def get_assignment(self, user_id: str) -> Optional[PermissionAssignment]:
        """Stored assignment of a user, or None."""
        client = self._client()
        try:
            data = await client.get(self._key(user_id))
        except Exception as e:
            self.logger.error("Error reading assignment", user_id=user_id, error=str(e))
            raise StoreError("Failed to read assignment")

        if not data:
            return None
        return assignment_from_document(json.loads(data), user_id=user_id)

    async def save_assignment(self, assignment: PermissionAssignment) -> PermissionAssignment:
        """Write an assignment, replacing any previous one."""
        client = self._client()
        try:
            await client.set(self._key(assignment.user_id), json.dumps(assignment_to_document(assignment)))
        except Exception as e:
            self.logger.error("Error saving assignment", user_id=assignment.user_id, error=str(e))
            raise StoreError("Failed to save assignment")

        self.logger.info("Assignment saved", user_id=assignment.user_id, role=assignment.role.value)
        return assignment

    async def delete_assignment(self, user_id: str) -> bool:
        """Delete an assignment; False when it did not exist."""
        client = self._client()
        try:
            deleted = await client.delete(self._key(user_id))
        except Exception as e:
            self.logger.error("Error deleting assignment", user_id=user_id, error=str(e))
            raise StoreError("Failed to delete assignment")

        return bool(deleted)

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except Exception:
            return False
