from __future__ import annotations

from pp_processor.database.score import Score
from pp_processor.database.user import User
from pp_processor.dependencies.database import transaction
from pp_processor.log import service_logger
from pp_processor.storage.replay import ReplayBlobStore

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

logger = service_logger("DuplicateScores")


class DuplicateScoreRemover:
    """Keeps one score per player and beatmap: the highest score value, then the lowest ID."""

    def __init__(self, engine: AsyncEngine, replays: ReplayBlobStore):
        self.engine = engine
        self.replays = replays

    async def remove_duplicates(self, score_id: int) -> list[int]:
        """Remove the other scores sharing the player and beatmap of ``score_id``."""
        async with transaction(self.engine) as session:
            score = await session.get(Score, score_id)
            if score is None:
                return []

            group = list(
                (await session.exec(select(Score).where(Score.uid == score.uid, Score.hash == score.hash))).all()
            )
            if len(group) < 2:
                return []

            keep = min(group, key=lambda s: (-s.score, s.id))
            removed = [s for s in group if s.id != keep.id]
            for other in removed:
                await session.delete(other)

            user = await session.get(User, score.uid)
            if user is not None:
                user.playcount = max(user.playcount - len(removed), 0)

        removed_ids = [s.id for s in removed if s.id is not None]
        for removed_id in removed_ids:
            await self.replays.delete_online(removed_id)
        logger.info(f"Removed {len(removed_ids)} duplicate score(s) of score ID {score_id}, kept {keep.id}")
        return removed_ids
