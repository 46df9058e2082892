import asyncio
import logging
from typing import Any, Awaitable, Dict, Iterable, List

from ..db.redis_client import Mutation, RedisClient, StorageError
from .errors import ServiceError, ServiceUnavailableError

logger = logging.getLogger(__name__)


class StoreService:
    """Common plumbing of the services that read and write the record store."""

    def __init__(self, redis_client: RedisClient):
        self.redis_client = redis_client

    async def _read(self, *reads: Awaitable[Any]) -> List[Any]:
        try:
            return list(await asyncio.gather(*reads))
        except StorageError as e:
            logger.error("Could not load collections from the store.", exc_info=True)
            raise ServiceUnavailableError("The record store is currently unavailable.") from e

    async def _update(self, keys: Iterable[str], mutate: Mutation, action: str) -> Dict[str, list]:
        try:
            return await self.redis_client.update_many(keys, mutate)
        except ServiceError as e:
            logger.warning(f"{action} rejected: {e}")
            raise
        except StorageError as e:
            logger.error(f"{action} failed in the store.", exc_info=True)
            raise ServiceUnavailableError("The record store is currently unavailable.") from e
