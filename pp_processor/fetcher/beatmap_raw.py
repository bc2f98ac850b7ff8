from pp_processor.log import fetcher_logger

from ._base import BaseFetcher

import redis.asyncio as redis

logger = fetcher_logger("BeatmapRawFetcher")


class BeatmapRawFetcher(BaseFetcher):
    async def get_beatmap_raw(self, beatmap_id: int) -> str | None:
        logger.opt(colors=True).debug(f"get_beatmap_raw: <y>{beatmap_id}</y>")
        resp = await self._request(
            f"{self.base_url}/getbeatmapfile",
            {"key": self.api_key, "id": str(beatmap_id)},
        )
        if resp is None or resp.status_code >= 400:
            return None
        return resp.text

    async def get_or_fetch_beatmap_raw(
        self, redis: redis.Redis | None, beatmap_id: int, cache_expire: int
    ) -> str | None:
        if redis is None:
            return await self.get_beatmap_raw(beatmap_id)

        cache_key = f"beatmap:{beatmap_id}:raw"

        # 检查缓存
        content = await redis.get(cache_key)
        if content:
            # 延长缓存时间
            await redis.expire(cache_key, cache_expire)
            return content

        # 获取并缓存
        raw = await self.get_beatmap_raw(beatmap_id)
        if raw is not None:
            await redis.set(cache_key, raw, ex=cache_expire)
        return raw

    async def invalidate_beatmap_raw(self, redis: redis.Redis | None, beatmap_id: int) -> None:
        if redis is not None:
            await redis.delete(f"beatmap:{beatmap_id}:raw")
