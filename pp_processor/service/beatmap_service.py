from __future__ import annotations

from datetime import timedelta

from pp_processor.database.beatmap import Beatmap
from pp_processor.database.difficulty_attributes import DifficultyAttributesCache
from pp_processor.dependencies.database import transaction, with_db
from pp_processor.fetcher import Fetcher
from pp_processor.log import logger
from pp_processor.utils import utcnow

from redis.asyncio import Redis
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncEngine


class BeatmapService:
    """Beatmap metadata with an in-memory, database and upstream layer.

    Beatmaps that cannot give pp are re-checked upstream once their cached
    status is older than ``recheck_minutes``.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        fetcher: Fetcher,
        redis: Redis | None = None,
        recheck_minutes: int = 30,
        cache_expire_hours: int = 24,
    ):
        self.engine = engine
        self.fetcher = fetcher
        self.redis = redis
        self.recheck_interval = timedelta(minutes=recheck_minutes)
        self.cache_expire = cache_expire_hours * 60 * 60
        self._by_id: dict[int, Beatmap] = {}
        self._by_hash: dict[str, Beatmap] = {}

    async def get_beatmap(self, id_or_hash: int | str) -> Beatmap | None:
        cache = self._by_id.get(id_or_hash) if isinstance(id_or_hash, int) else self._by_hash.get(id_or_hash)

        if cache is None:
            async with with_db(self.engine) as session:
                cache = await Beatmap.get_by_id_or_hash(session, id_or_hash)

        if cache is None:
            resp = await self.fetcher.get_beatmap(id_or_hash)
            if resp is None:
                return None
            cache = Beatmap.from_api(resp)

            # A hash lookup can return a newer version of a beatmap we already know.
            if isinstance(id_or_hash, str):
                old = self._by_id.get(cache.id)
                if old is None:
                    async with with_db(self.engine) as session:
                        old = await session.get(Beatmap, cache.id)
                if old is not None and old.hash != cache.hash:
                    await self._invalidate(old.hash, cache.id)

            await self._save(cache)

        if not cache.has_pp and cache.last_checked < utcnow() - self.recheck_interval:
            resp = await self.fetcher.get_beatmap(cache.id)
            if resp is None:
                # Cannot check the status right now; keep the cached row.
                return None
            fresh = Beatmap.from_api(resp)

            if fresh.hash != cache.hash:
                logger.info(f"Beatmap {cache.id} was updated ({cache.hash} -> {fresh.hash})")
                await self._invalidate(cache.hash, cache.id)
                cache = fresh
                await self._save(cache)
            else:
                cache.last_checked = fresh.last_checked
                cache.ranked_status = fresh.ranked_status
                async with transaction(self.engine) as session:
                    row = await session.get(Beatmap, cache.id)
                    if row is not None:
                        row.last_checked = cache.last_checked
                        row.ranked_status = cache.ranked_status

        self._remember(cache)
        return cache

    async def get_beatmap_file(self, beatmap_id: int) -> str | None:
        return await self.fetcher.get_or_fetch_beatmap_raw(self.redis, beatmap_id, self.cache_expire)

    def _remember(self, beatmap: Beatmap) -> None:
        self._by_id[beatmap.id] = beatmap
        self._by_hash[beatmap.hash] = beatmap

    async def _save(self, beatmap: Beatmap) -> None:
        async with transaction(self.engine) as session:
            await session.merge(beatmap)
        self._remember(beatmap)

    async def _invalidate(self, old_hash: str, beatmap_id: int) -> None:
        self._by_id.pop(beatmap_id, None)
        self._by_hash.pop(old_hash, None)
        async with transaction(self.engine) as session:
            await DifficultyAttributesCache.invalidate(session, beatmap_id)
            await session.execute(delete(Beatmap).where(Beatmap.id == beatmap_id))  # pyright: ignore[reportArgumentType]
        await self.fetcher.invalidate_beatmap_raw(self.redis, beatmap_id)

    async def close(self) -> None:
        await self.fetcher.close()
