"""谱面信息缓存与状态复查"""

from datetime import timedelta
from typing import Any

from conftest import BEATMAP_HASH, make_beatmap
from pp_processor.database import Beatmap, DifficultyAttributesCache
from pp_processor.dependencies.database import transaction, with_db
from pp_processor.models.beatmap import BeatmapRankStatus
from pp_processor.service.beatmap_service import BeatmapService
from pp_processor.utils import utcnow

import pytest

pytestmark = pytest.mark.asyncio

NEW_HASH = "f" * 32


def api_beatmap(beatmap_id: int = 1, hash: str = BEATMAP_HASH, approved: int = 1) -> dict[str, Any]:
    return {
        "beatmap_id": str(beatmap_id),
        "file_md5": hash,
        "artist": "Artist",
        "title": "Title",
        "creator": "Mapper",
        "version": "Insane",
        "hit_length": "90",
        "total_length": "100",
        "max_combo": "200",
        "count_normal": "60",
        "count_slider": "38",
        "count_spinner": "2",
        "approved": str(approved),
    }


class FakeFetcher:
    def __init__(self, responses: dict[int | str, dict[str, Any] | None] | None = None):
        self.responses = responses or {}
        self.calls: list[int | str] = []
        self.invalidated: list[int] = []

    async def get_beatmap(self, id_or_hash: int | str) -> dict[str, Any] | None:
        self.calls.append(id_or_hash)
        return self.responses.get(id_or_hash)

    async def get_or_fetch_beatmap_raw(self, redis, beatmap_id: int, cache_expire: int) -> str | None:
        return "osu file format v14"

    async def invalidate_beatmap_raw(self, redis, beatmap_id: int) -> None:
        self.invalidated.append(beatmap_id)

    async def close(self) -> None:
        pass


def service(engine, fetcher: FakeFetcher) -> BeatmapService:
    return BeatmapService(engine, fetcher)  # pyright: ignore[reportArgumentType]


async def stored(engine, beatmap_id: int) -> Beatmap | None:
    async with with_db(engine) as session:
        return await session.get(Beatmap, beatmap_id)


async def test_upstream_result_is_stored(processor_engine):
    fetcher = FakeFetcher({BEATMAP_HASH: api_beatmap()})
    beatmaps = service(processor_engine, fetcher)

    beatmap = await beatmaps.get_beatmap(BEATMAP_HASH)

    assert beatmap is not None
    assert beatmap.title == "Artist - Title (Mapper) [Insane]"
    assert beatmap.object_count == 100
    assert beatmap.has_pp
    assert await stored(processor_engine, 1) is not None

    # Served from memory afterwards.
    assert await beatmaps.get_beatmap(1) is beatmap
    assert fetcher.calls == [BEATMAP_HASH]


async def test_unknown_beatmap(processor_engine):
    assert await service(processor_engine, FakeFetcher()).get_beatmap(BEATMAP_HASH) is None


async def test_recently_checked_unranked_beatmap_is_not_refetched(processor_engine):
    async with transaction(processor_engine) as session:
        session.add(make_beatmap(status=BeatmapRankStatus.PENDING))
    fetcher = FakeFetcher()

    beatmap = await service(processor_engine, fetcher).get_beatmap(1)

    assert beatmap is not None and not beatmap.has_pp
    assert fetcher.calls == []


async def test_stale_unranked_beatmap_picks_up_new_status(processor_engine):
    async with transaction(processor_engine) as session:
        session.add(make_beatmap(status=BeatmapRankStatus.PENDING, last_checked=utcnow() - timedelta(hours=1)))
    fetcher = FakeFetcher({1: api_beatmap(approved=1)})

    beatmap = await service(processor_engine, fetcher).get_beatmap(BEATMAP_HASH)

    assert beatmap is not None and beatmap.has_pp
    row = await stored(processor_engine, 1)
    assert row is not None
    assert row.ranked_status == BeatmapRankStatus.RANKED
    assert row.last_checked > utcnow() - timedelta(minutes=1)


async def test_stale_beatmap_is_kept_when_upstream_is_unreachable(processor_engine):
    async with transaction(processor_engine) as session:
        session.add(make_beatmap(status=BeatmapRankStatus.PENDING, last_checked=utcnow() - timedelta(hours=1)))

    assert await service(processor_engine, FakeFetcher()).get_beatmap(1) is None
    assert await stored(processor_engine, 1) is not None


async def test_changed_hash_invalidates_caches(processor_engine):
    async with transaction(processor_engine) as session:
        session.add(make_beatmap(status=BeatmapRankStatus.PENDING, last_checked=utcnow() - timedelta(hours=1)))
        session.add(DifficultyAttributesCache(beatmap_id=1, mods="", attributes={"star_rating": 5, "max_combo": 1}))
    fetcher = FakeFetcher({1: api_beatmap(hash=NEW_HASH, approved=2)})
    beatmaps = service(processor_engine, fetcher)

    beatmap = await beatmaps.get_beatmap(1)

    assert beatmap is not None and beatmap.hash == NEW_HASH
    assert fetcher.invalidated == [1]
    async with with_db(processor_engine) as session:
        assert await DifficultyAttributesCache.get_attributes(session, 1, "") is None
        row = await session.get(Beatmap, 1)
    assert row is not None and row.hash == NEW_HASH
    assert await beatmaps.get_beatmap(BEATMAP_HASH) is None


async def test_hash_lookup_replaces_outdated_version(processor_engine):
    async with transaction(processor_engine) as session:
        session.add(make_beatmap())
    fetcher = FakeFetcher({NEW_HASH: api_beatmap(hash=NEW_HASH)})

    beatmap = await service(processor_engine, fetcher).get_beatmap(NEW_HASH)

    assert beatmap is not None and beatmap.id == 1
    assert fetcher.invalidated == [1]
    row = await stored(processor_engine, 1)
    assert row is not None and row.hash == NEW_HASH
