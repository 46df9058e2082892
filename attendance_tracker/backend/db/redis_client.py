import asyncio
import json
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError
from pydantic import TypeAdapter, ValidationError

from ..config.config import settings
from ..models.redis_models import UserSession
from ..models.store_models import (
    ATTENDANCE_KEY, BATCHES_KEY, DARK_MODE_KEY, STUDENTS_KEY, TRAININGS_KEY,
    AttendanceRecord, Student, TrainingRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Value type of each entity collection; all of them default to an empty list.
COLLECTION_TYPES: Dict[str, Any] = {
    BATCHES_KEY: List[str],
    STUDENTS_KEY: List[Student],
    ATTENDANCE_KEY: List[AttendanceRecord],
    TRAININGS_KEY: List[TrainingRecord],
}

Mutation = Callable[[Dict[str, list]], Dict[str, list]]


class StorageError(Exception):
    """Raised when the store cannot be reached or a write does not go through."""
    pass


@lru_cache(maxsize=None)
def _adapter(value_type: Any) -> TypeAdapter:
    return TypeAdapter(value_type)


class ChangeSubscription:
    """Handle returned by RedisClient.subscribe; yields the names of changed keys."""

    def __init__(self, pubsub):
        self._pubsub = pubsub

    async def next_change(self, timeout: float = 1.0) -> Optional[str]:
        """Waits up to `timeout` seconds for a change; returns the key or None."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=remaining)
            if message and message.get("type") == "message":
                return message["data"]


class RedisClient:
    """
    Key-value persistence adapter. Every collection lives under one key as a
    JSON blob; every successful write is announced on the key's change channel.
    """

    def __init__(self, connection: redis.Redis, prefix: Optional[str] = None):
        self._redis = connection
        self._prefix = settings.STORE_KEY_PREFIX if prefix is None else prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _channel(self, key: str) -> str:
        return f"{self._prefix}changes:{key}"

    # ===== Serialization =====

    @staticmethod
    def _encode(value: Any, value_type: Any = None) -> str:
        if value_type is None:
            return json.dumps(value)
        return _adapter(value_type).dump_json(value, by_alias=True).decode("utf-8")

    @staticmethod
    def _parse(raw: str, value_type: Any = None) -> Any:
        if value_type is None:
            return json.loads(raw)
        return _adapter(value_type).validate_json(raw)

    @classmethod
    def _decode(cls, key: str, raw: Optional[str], default: T, value_type: Any = None) -> T:
        if raw is None:
            return default
        try:
            return cls._parse(raw, value_type)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Malformed value stored under '{key}', using the default instead: {e}")
            return default

    # ===== Generic key-value access =====

    async def read(self, key: str, default: T, value_type: Any = None) -> T:
        """Returns the value under `key`, or `default` when absent or malformed."""
        try:
            raw = await self._redis.get(self._key(key))
        except RedisError as e:
            logger.error(f"Could not read key '{key}'.", exc_info=True)
            raise StorageError(f"Could not read '{key}' from the store.") from e
        return self._decode(key, raw, default, value_type)

    async def write(self, key: str, value: Any, value_type: Any = None) -> None:
        """Replaces the value under `key` and notifies subscribers of the key."""
        payload = self._encode(value, value_type)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(self._key(key), payload)
                pipe.publish(self._channel(key), key)
                await pipe.execute()
        except RedisError as e:
            logger.warning(f"Could not write key '{key}'; the stored value is unchanged: {e}")
            raise StorageError(f"Could not write '{key}' to the store.") from e

    async def update_many(self, keys: Iterable[str], mutate: Mutation) -> Dict[str, list]:
        """
        Atomic read-modify-write over one or more collections.

        The keys are WATCHed, decoded and handed to `mutate` as a dict; the dict
        it returns is written back in a single MULTI/EXEC together with the change
        notifications. If another client writes one of the keys in between, the
        transaction is discarded and `mutate` runs again on fresh data. Any
        exception raised by `mutate` aborts the update without writing.

        Absent keys start out empty; a key holding a malformed value aborts the
        update with StorageError so the stored value is never overwritten.
        """
        keys = list(keys)
        names = {key: self._key(key) for key in keys}
        for attempt in range(1, settings.UPDATE_MAX_RETRIES + 1):
            try:
                async with self._redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(*names.values())
                    current = {}
                    for key in keys:
                        raw = await pipe.get(names[key])
                        current[key] = self._decode_for_update(key, raw)

                    changed = mutate(current)

                    pipe.multi()
                    for key, value in changed.items():
                        pipe.set(names[key], self._encode(value, COLLECTION_TYPES[key]))
                        pipe.publish(self._channel(key), key)
                    await pipe.execute()
                    return changed
            except WatchError:
                logger.info(f"Concurrent write on {keys}, retrying update (attempt {attempt}).")
            except RedisError as e:
                logger.warning(f"Could not update {keys}; the stored values are unchanged: {e}")
                raise StorageError(f"Could not update {keys} in the store.") from e

        logger.error(f"Giving up on updating {keys} after {settings.UPDATE_MAX_RETRIES} conflicting writes.")
        raise StorageError(f"Too many concurrent writes on {keys}; please retry.")

    def _decode_for_update(self, key: str, raw: Optional[str]) -> list:
        if raw is None:
            return []
        try:
            return self._parse(raw, COLLECTION_TYPES[key])
        except (ValueError, ValidationError) as e:
            logger.error(f"Refusing to update '{key}': the stored value is malformed: {e}")
            raise StorageError(f"The stored value of '{key}' is malformed; it was left unchanged.") from e

    async def update(self, key: str, mutate: Callable[[list], list]) -> list:
        """Single-collection form of update_many."""
        changed = await self.update_many([key], lambda values: {key: mutate(values[key])})
        return changed[key]

    @asynccontextmanager
    async def subscribe(self, keys: Iterable[str]) -> AsyncIterator[ChangeSubscription]:
        """Listens for writes to `keys`, including writes made through this client."""
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(*(self._channel(key) for key in keys))
        try:
            yield ChangeSubscription(pubsub)
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()

    # ===== Entity collections =====

    async def get_batches(self) -> List[str]:
        return await self.read(BATCHES_KEY, [], COLLECTION_TYPES[BATCHES_KEY])

    async def get_students(self) -> List[Student]:
        return await self.read(STUDENTS_KEY, [], COLLECTION_TYPES[STUDENTS_KEY])

    async def get_attendance(self) -> List[AttendanceRecord]:
        return await self.read(ATTENDANCE_KEY, [], COLLECTION_TYPES[ATTENDANCE_KEY])

    async def get_trainings(self) -> List[TrainingRecord]:
        return await self.read(TRAININGS_KEY, [], COLLECTION_TYPES[TRAININGS_KEY])

    async def exists(self, key: str) -> bool:
        return bool(await self._redis.exists(self._key(key)))

    # ===== UI preferences =====

    async def get_dark_mode(self) -> bool:
        return await self.read(DARK_MODE_KEY, False, bool)

    async def set_dark_mode(self, enabled: bool) -> None:
        await self.write(DARK_MODE_KEY, enabled, bool)

    # ===== User Session Management =====

    async def save_user_session(self, session: UserSession, ttl: int):
        """Stores the user's session with a TTL."""
        username = session.user_data.username
        try:
            await self._redis.set(self._key(f"sessions:{username}"), session.model_dump_json(), ex=ttl)
        except RedisError as e:
            logger.warning(f"Could not save the session of '{username}': {e}")
            raise StorageError(f"Could not save the session of '{username}'.") from e

    async def get_user_session(self, username: str) -> Optional[UserSession]:
        try:
            session_json = await self._redis.get(self._key(f"sessions:{username}"))
        except RedisError as e:
            logger.error(f"Could not read the session of '{username}'.", exc_info=True)
            raise StorageError(f"Could not read the session of '{username}'.") from e
        return UserSession.model_validate_json(session_json) if session_json else None

    async def delete_user_session(self, username: str) -> int:
        try:
            return await self._redis.delete(self._key(f"sessions:{username}"))
        except RedisError as e:
            logger.warning(f"Could not delete the session of '{username}': {e}")
            raise StorageError(f"Could not delete the session of '{username}'.") from e
