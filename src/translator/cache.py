"""Per-(entity, language) translation cache with pluggable storage."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from redis.exceptions import RedisError

from common.config import settings
from common.redis_client import RedisConnection
from common.schemas import CacheEntry, CacheStatus
from common.utils import DateTimeUtils, StringUtils

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """
    Storage interface for cache entries keyed by (entity_id, language).

    Implementations never evict: entries live as long as the store does,
    which is bounded by the size of the conversation.
    """

    @abstractmethod
    async def load(self, entity_id: str, language: str) -> Optional[CacheEntry]:
        """Return the entry for the pair, or None if absent."""

    @abstractmethod
    async def save(self, entry: CacheEntry) -> None:
        """Store or overwrite the entry for its pair."""

    @abstractmethod
    async def load_all(self, entity_id: str) -> List[CacheEntry]:
        """Return every entry of one entity."""

    async def health_check(self) -> Dict[str, object]:
        """Report backend health; in-process stores are always healthy."""
        return {"connected": True}


class InMemoryCacheStore(CacheStore):
    """Dictionary-backed store living for the lifetime of the process."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], CacheEntry] = {}

    async def load(self, entity_id: str, language: str) -> Optional[CacheEntry]:
        return self._entries.get((entity_id, language))

    async def save(self, entry: CacheEntry) -> None:
        self._entries[(entry.entity_id, entry.language)] = entry

    async def load_all(self, entity_id: str) -> List[CacheEntry]:
        return [e for (eid, _), e in self._entries.items() if eid == entity_id]

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheStore(CacheStore):
    """
    Redis-backed store; each entry is one hash with no TTL.

    A companion set per entity records which languages are cached so that
    load_all does not need to scan the keyspace.
    """

    def __init__(self, connection: RedisConnection, key_prefix: Optional[str] = None):
        self.connection = connection
        self.key_prefix = key_prefix or settings.redis_cache_key_prefix

    def _entry_key(self, entity_id: str, language: str) -> str:
        return StringUtils.generate_cache_key(self.key_prefix, entity_id, language)

    def _index_key(self, entity_id: str) -> str:
        return StringUtils.generate_entity_index_key(self.key_prefix, entity_id)

    async def load(self, entity_id: str, language: str) -> Optional[CacheEntry]:
        if not await self.connection.ensure_connected():
            logger.warning("Redis unavailable - treating cache entry as absent")
            return None

        data = await self.connection.client.hgetall(self._entry_key(entity_id, language))
        if not data:
            return None
        return CacheEntry.model_validate_json(data["entry"])

    async def save(self, entry: CacheEntry) -> None:
        if not await self.connection.ensure_connected():
            raise RedisError("Redis unavailable - cannot store cache entry")

        client = self.connection.client
        async with client.pipeline(transaction=True) as pipe:
            pipe.hset(
                self._entry_key(entry.entity_id, entry.language),
                mapping={"status": entry.status.value, "entry": entry.model_dump_json()},
            )
            pipe.sadd(self._index_key(entry.entity_id), entry.language)
            await pipe.execute()

    async def load_all(self, entity_id: str) -> List[CacheEntry]:
        if not await self.connection.ensure_connected():
            return []

        languages = await self.connection.client.smembers(self._index_key(entity_id))
        entries = []
        for language in sorted(languages):
            entry = await self.load(entity_id, language)
            if entry:
                entries.append(entry)
        return entries

    async def health_check(self) -> Dict[str, object]:
        return await self.connection.health_check()


class TranslationCache:
    """
    Keyed store of translations, one slot per (entity_id, language).

    Writes follow last-write-wins per pair: whichever result resolves last
    overwrites the slot. The one exception is that a failure never replaces
    an entry that is already Ready, since the content is immutable and a
    Ready translation of it stays valid.
    """

    def __init__(self, store: Optional[CacheStore] = None):
        self.store = store or InMemoryCacheStore()

    async def get(self, entity_id: str, language: str) -> Optional[CacheEntry]:
        """
        Look up the entry for a pair.

        Returns:
            CacheEntry, or None if nothing was ever recorded for the pair
        """
        return await self.store.load(entity_id, language)

    async def put(self, entity_id: str, language: str, text: str) -> CacheEntry:
        """Record a successful translation, overwriting whatever was there."""
        entry = CacheEntry(
            entity_id=entity_id,
            language=language,
            status=CacheStatus.READY,
            text=text,
            updated_at=DateTimeUtils.get_current_utc_datetime(),
        )
        await self.store.save(entry)
        logger.debug(f"Cached translation for {entity_id} [{language}]")
        return entry

    async def mark_pending(self, entity_id: str, language: str) -> CacheEntry:
        """
        Mark a pair as being fetched.

        A Ready entry is left untouched and returned as is.
        """
        existing = await self.store.load(entity_id, language)
        if existing and existing.is_ready:
            return existing

        entry = CacheEntry(entity_id=entity_id, language=language, status=CacheStatus.PENDING)
        await self.store.save(entry)
        return entry

    async def mark_failed(self, entity_id: str, language: str, error: str) -> CacheEntry:
        """
        Record a failed fetch for a pair.

        A Ready entry is never downgraded; it is returned unchanged.
        """
        existing = await self.store.load(entity_id, language)
        if existing and existing.is_ready:
            logger.info(
                f"Ignoring late failure for {entity_id} [{language}]: already ready"
            )
            return existing

        entry = CacheEntry(
            entity_id=entity_id,
            language=language,
            status=CacheStatus.FAILED,
            error=error,
        )
        await self.store.save(entry)
        return entry

    async def entries_for(self, entity_id: str) -> List[CacheEntry]:
        """Every cached language of one entity."""
        return await self.store.load_all(entity_id)

    @staticmethod
    def needs_fetch(entry: Optional[CacheEntry]) -> bool:
        """
        Lookup-or-fetch policy: anything but Ready needs a fetch.

        A Pending entry counts too; callers join the fetch already in
        flight for the pair instead of starting a second one.
        """
        return entry is None or not entry.is_ready

    async def health_check(self) -> Dict[str, object]:
        return await self.store.health_check()


def create_cache_store(connection: Optional[RedisConnection] = None) -> CacheStore:
    """
    Build the store selected by settings.cache_backend.

    Args:
        connection: Redis connection to use for the 'redis' backend

    Returns:
        CacheStore instance
    """
    if settings.cache_backend == "redis":
        return RedisCacheStore(connection or RedisConnection())
    return InMemoryCacheStore()
