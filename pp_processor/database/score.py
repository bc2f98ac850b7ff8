from datetime import datetime

from pp_processor.models.mods import DroidMods, parse_mod_descriptor
from pp_processor.models.replay import Accuracy
from pp_processor.utils import utcnow

from sqlalchemy import DateTime, update
from sqlmodel import Field, SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession


class ScoreBase(SQLModel):
    uid: int = Field(index=True)
    filename: str = Field(default="", max_length=255)
    hash: str = Field(max_length=36, index=True)
    mods: str = Field(default="", max_length=255)
    score: int = Field(default=0)
    combo: int = Field(default=0)
    mark: str | None = Field(default=None, max_length=2)
    geki: int = Field(default=0)
    perfect: int = Field(default=0)
    katu: int = Field(default=0)
    good: int = Field(default=0)
    bad: int = Field(default=0)
    miss: int = Field(default=0)
    date: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    slider_tick_hit: int | None = Field(default=None)
    slider_end_hit: int | None = Field(default=None)
    accuracy: float = Field(default=0)

    @property
    def hit_accuracy(self) -> Accuracy:
        return Accuracy(n300=self.perfect, n100=self.good, n50=self.bad, nmiss=self.miss)

    @property
    def parsed_mods(self) -> DroidMods:
        return parse_mod_descriptor(self.mods)


class Score(ScoreBase, table=True):
    __tablename__: str = "score"
    id: int | None = Field(default=None, primary_key=True)
    pp: float | None = Field(default=None)
    pp_multiplier: float | None = Field(default=None)

    @classmethod
    async def set_pp(cls, session: AsyncSession, score_id: int, pp: float | None) -> None:
        await session.execute(update(cls).where(cls.id == score_id).values(pp=pp))  # pyright: ignore[reportArgumentType]


__all__ = ["Score", "ScoreBase"]
