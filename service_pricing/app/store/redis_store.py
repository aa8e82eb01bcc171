"""
Redis document store for saved product configurations.
"""

import json
import uuid
from typing import Dict, Any, Optional, List
from datetime import datetime, timezone

import redis.asyncio as redis
from shared.logging import get_logger
from shared.errors import StoreError


class ConfigurationStore:
    """Saved configurations kept as JSON documents in Redis."""

    CONFIG_PREFIX = "configuration:"
    USER_INDEX_PREFIX = "user-configurations:"

    def __init__(self, redis_url: str, ttl_seconds: int = 0):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger("pricing.store.redis")
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

            self.logger.info("Configuration store started")

        except Exception as e:
            self.logger.error("Failed to start configuration store", error=str(e))
            raise StoreError(f"Could not connect to Redis: {e}")

    async def stop(self):
        """Close the Redis connection."""
        if self.redis:
            await self.redis.close()
            self.logger.info("Configuration store stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise StoreError("Configuration store is not started")
        return self.redis

    async def save_configuration(
        self,
        user_id: str,
        category: str,
        config: Dict[str, Any],
        price: float,
        description: str,
        name: str = "My Configuration"
    ) -> Dict[str, Any]:
        """Persist a configuration snapshot and return the stored document."""
        client = self._client()
        now = datetime.now(timezone.utc).isoformat()
        document = {
            "id": str(uuid.uuid4()),
            "userId": user_id,
            "category": category,
            "config": config,
            "price": price,
            "description": description,
            "name": name,
            "createdAt": now,
            "updatedAt": now
        }

        try:
            key = self._config_key(document["id"])
            payload = json.dumps(document)
            async with client.pipeline(transaction=True) as pipeline:
                if self.ttl_seconds:
                    pipeline.setex(key, self.ttl_seconds, payload)
                else:
                    pipeline.set(key, payload)
                pipeline.zadd(
                    self._user_index_key(user_id),
                    {document["id"]: datetime.now(timezone.utc).timestamp()}
                )
                await pipeline.execute()
        except Exception as e:
            self.logger.error("Error saving configuration", user_id=user_id, error=str(e))
            raise StoreError("Failed to save configuration")

        self.logger.info("Configuration saved", config_id=document["id"], user_id=user_id, category=category)
        return document

    async def get_configuration(self, config_id: str) -> Optional[Dict[str, Any]]:
        """Saved configuration by id, or None."""
        client = self._client()
        try:
            data = await client.get(self._config_key(config_id))
        except Exception as e:
            self.logger.error("Error reading configuration", config_id=config_id, error=str(e))
            raise StoreError("Failed to read configuration")

        if not data:
            return None
        return json.loads(data)

    async def list_configurations(self, user_id: str) -> List[Dict[str, Any]]:
        """Saved configurations of a user, newest first."""
        client = self._client()
        try:
            config_ids = await client.zrevrange(self._user_index_key(user_id), 0, -1)
            if not config_ids:
                return []
            documents = await client.mget([self._config_key(config_id) for config_id in config_ids])
        except Exception as e:
            self.logger.error("Error listing configurations", user_id=user_id, error=str(e))
            raise StoreError("Failed to list configurations")

        stale = [config_id for config_id, document in zip(config_ids, documents) if not document]
        if stale:
            # Documents expired under their TTL
            try:
                await client.zrem(self._user_index_key(user_id), *stale)
            except Exception as e:
                self.logger.error("Error pruning configuration index", user_id=user_id, error=str(e))
                raise StoreError("Failed to list configurations")
            self.logger.debug("Pruned expired configurations", user_id=user_id, count=len(stale))

        return [json.loads(document) for document in documents if document]

    async def delete_configuration(self, config_id: str) -> bool:
        """Delete a saved configuration; False when it did not exist."""
        document = await self.get_configuration(config_id)
        if document is None:
            return False

        client = self._client()
        try:
            async with client.pipeline(transaction=True) as pipeline:
                pipeline.delete(self._config_key(config_id))
                pipeline.zrem(self._user_index_key(document["userId"]), config_id)
                await pipeline.execute()
        except Exception as e:
            self.logger.error("Error deleting configuration", config_id=config_id, error=str(e))
            raise StoreError("Failed to delete configuration")

        self.logger.info("Configuration deleted", config_id=config_id)
        return True

    def _config_key(self, config_id: str) -> str:
        return f"{self.CONFIG_PREFIX}{config_id}"

    def _user_index_key(self, user_id: str) -> str:
        return f"{self.USER_INDEX_PREFIX}{user_id}"

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except Exception:
            return False
