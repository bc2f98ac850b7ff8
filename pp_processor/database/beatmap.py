from datetime import datetime
from typing import Any

from pp_processor.models.beatmap import BeatmapRankStatus
from pp_processor.utils import utcnow

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession


class Beatmap(SQLModel, table=True):
    __tablename__: str = "beatmap"
    id: int = Field(primary_key=True, index=True)
    hash: str = Field(max_length=32, index=True)
    title: str = Field(max_length=512)
    hit_length: int = Field(default=0)
    total_length: int = Field(default=0)
    max_combo: int | None = Field(default=None)
    object_count: int = Field(default=0)
    ranked_status: BeatmapRankStatus = Field(default=BeatmapRankStatus.PENDING)
    last_checked: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    @classmethod
    def from_api(cls, resp: dict[str, Any]) -> "Beatmap":
        """Build a cache row from an osu! API v1 ``get_beatmaps`` entry."""
        max_combo = resp.get("max_combo")
        return cls(
            id=int(resp["beatmap_id"]),
            hash=resp["file_md5"],
            title=f"{resp['artist']} - {resp['title']} ({resp['creator']}) [{resp['version']}]",
            hit_length=int(resp.get("hit_length") or 0),
            total_length=int(resp.get("total_length") or 0),
            max_combo=int(max_combo) if max_combo is not None else None,
            object_count=sum(int(resp.get(key) or 0) for key in ("count_normal", "count_slider", "count_spinner")),
            ranked_status=BeatmapRankStatus(int(resp["approved"])),
            last_checked=utcnow(),
        )

    @classmethod
    async def get_by_id_or_hash(cls, session: AsyncSession, id_or_hash: int | str) -> "Beatmap | None":
        if isinstance(id_or_hash, int):
            return await session.get(cls, id_or_hash)
        return (await session.exec(select(cls).where(cls.hash == id_or_hash))).first()

    @property
    def has_pp(self) -> bool:
        return BeatmapRankStatus(self.ranked_status).has_pp()

    @property
    def is_too_short(self) -> bool:
        # 少于 30 秒，或可游玩部分不足 60%
        if self.hit_length < 30 or self.total_length <= 0:
            return True
        return self.hit_length / self.total_length < 0.6
