from .score import ScoreBase

from sqlalchemy import BigInteger, Column, UniqueConstraint
from sqlmodel import Field, select
from sqlmodel.ext.asyncio.session import AsyncSession


class BestScore(ScoreBase, table=True):
    """The highest-pp play of a player on one beatmap, keyed by the score it came from."""

    __tablename__: str = "score_best"
    __table_args__ = (UniqueConstraint("uid", "hash", name="uniq_best_uid_hash"),)

    id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))
    pp: float = Field(default=0)
    pp_multiplier: float = Field(default=1)

    @classmethod
    async def get_by_player_beatmap(cls, session: AsyncSession, uid: int, hash: str) -> "BestScore | None":
        return (await session.exec(select(cls).where(cls.uid == uid, cls.hash == hash))).first()


__all__ = ["BestScore"]
