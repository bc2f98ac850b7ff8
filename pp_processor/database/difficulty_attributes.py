from typing import Any

from pp_processor.models.performance import DifficultyAttributes

from sqlalchemy import JSON, Column, delete
from sqlmodel import Field, SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession


class DifficultyAttributesCache(SQLModel, table=True):
    __tablename__: str = "difficulty_attributes"
    beatmap_id: int = Field(primary_key=True)
    mods: str = Field(primary_key=True, max_length=255)
    attributes: dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))

    @classmethod
    async def get_attributes(cls, session: AsyncSession, beatmap_id: int, mods: str) -> DifficultyAttributes | None:
        cached = await session.get(cls, (beatmap_id, mods))
        if cached is None:
            return None
        return DifficultyAttributes.model_validate(cached.attributes)

    @classmethod
    async def store(cls, session: AsyncSession, beatmap_id: int, mods: str, attributes: DifficultyAttributes) -> None:
        # Entries are immutable once computed.
        if await session.get(cls, (beatmap_id, mods)) is not None:
            return
        session.add(cls(beatmap_id=beatmap_id, mods=mods, attributes=attributes.model_dump()))

    @classmethod
    async def invalidate(cls, session: AsyncSession, beatmap_id: int) -> None:
        await session.execute(delete(cls).where(cls.beatmap_id == beatmap_id))  # pyright: ignore[reportArgumentType]
