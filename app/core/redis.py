import logging
from datetime import date, datetime
from typing import Optional

import pytz
import redis.asyncio as redis
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.schemas.checklist.checklist_schema import ChecklistCompletionResult

logger = logging.getLogger(__name__)

class RedisClient:
    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self.redis = None

    async def connect(self):
        """Connect to Redis"""
        try:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )
            await self.redis.ping()
            logger.info("✅ Redis connected successfully")
        except Exception as e:
            logger.error(f"❌ Redis connection failed: {str(e)}")
            self.redis = None
            raise

    async def disconnect(self):
        if self.redis:
            await self.redis.close()
            self.redis = None
            logger.info("Redis disconnected")

    async def get(self, key: str):
        if not self.redis:
            await self.connect()
        return await self.redis.get(key)

    async def set(self, key: str, value: str, expire: int = None):
        if not self.redis:
            await self.connect()
        return await self.redis.set(key, value, ex=expire)

    async def delete(self, key: str):
        if not self.redis:
            await self.connect()
        return await self.redis.delete(key)


class SnapshotCache:
    """
    Last-known-good completion results, one key per date.
    Cache failures are logged and never break the caller.
    """
    def __init__(self, client, prefix: Optional[str] = None, ttl_seconds: Optional[int] = None):
        self.client = client
        self.prefix = prefix or settings.SNAPSHOT_CACHE_PREFIX
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SNAPSHOT_CACHE_TTL_SECONDS

    def key_for(self, report_date: date) -> str:
        return f"{self.prefix}:{report_date.isoformat()}"

    async def save(self, result: ChecklistCompletionResult) -> Optional[ChecklistCompletionResult]:
        snapshot = result.model_copy(update={"cached_at": datetime.now(pytz.utc), "stale": False, "error": None})
        try:
            await self.client.set(self.key_for(result.report_date), snapshot.model_dump_json(), expire=self.ttl_seconds)
            return snapshot
        except Exception as e:
            logger.warning(f"Could not cache checklist snapshot for {result.report_date}: {str(e)}")
            return None

    async def load(self, report_date: date) -> Optional[ChecklistCompletionResult]:
        try:
            raw = await self.client.get(self.key_for(report_date))
        except Exception as e:
            logger.warning(f"Could not read checklist snapshot for {report_date}: {str(e)}")
            return None
        if not raw:
            return None
        try:
            return ChecklistCompletionResult.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(f"Discarding unreadable checklist snapshot for {report_date}: {str(e)}")
            return None


# Global Redis client instance
redis_client = RedisClient()
