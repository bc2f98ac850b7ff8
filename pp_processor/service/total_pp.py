from __future__ import annotations

from datetime import timedelta
from typing import NamedTuple

from pp_processor.calculator import calculate_pp_weight
from pp_processor.database.best_score import BestScore
from pp_processor.database.user import User
from pp_processor.dependencies.database import transaction
from pp_processor.log import service_logger
from pp_processor.utils import utcnow

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col, select

logger = service_logger("TotalPP")

TOP_SCORE_COUNT = 100
INACTIVE_AFTER = timedelta(days=90)


class PlayerTotal(NamedTuple):
    pp: float
    accuracy: float


def aggregate_best_scores(scores: list[tuple[float, float]]) -> PlayerTotal:
    """Weight ``(pp, accuracy)`` pairs, already ordered by pp descending."""
    total_pp = 0.0
    accuracy = 0.0
    weight = 0.0
    for i, (pp, acc) in enumerate(scores):
        w = calculate_pp_weight(i)
        total_pp += pp * w
        accuracy += acc * w
        weight += w
    return PlayerTotal(total_pp, accuracy / weight if weight > 0 else 1.0)


class TotalPPService:
    def __init__(self, engine: AsyncEngine, top_count: int = TOP_SCORE_COUNT, inactive_after: timedelta = INACTIVE_AFTER):
        self.engine = engine
        self.top_count = top_count
        self.inactive_after = inactive_after

    async def recalculate(self, user_id: int) -> PlayerTotal | None:
        async with transaction(self.engine) as session:
            user = await session.get(User, user_id)
            if user is None:
                logger.info(f"User {user_id} does not exist")
                return None

            if user.last_login_time is not None and user.last_login_time < utcnow() - self.inactive_after:
                logger.info(f"User {user_id} has not logged in for {self.inactive_after.days} days")
                user.pp = 0
                user.accuracy = 1
                return PlayerTotal(0, 1)

            scores = (
                await session.exec(
                    select(BestScore.pp, BestScore.accuracy)
                    .where(BestScore.uid == user_id)
                    .order_by(col(BestScore.pp).desc())
                    .limit(self.top_count)
                )
            ).all()
            total = aggregate_best_scores([(pp, acc) for pp, acc in scores])
            user.pp = total.pp
            user.accuracy = total.accuracy

        logger.info(f"User {user_id} has {total.pp:.2f} pp and {total.accuracy:.4f} accuracy")
        return total
