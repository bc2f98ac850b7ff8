from __future__ import annotations

from typing import TYPE_CHECKING

from pp_processor.calculator import PerformanceEvaluator, dampen_pp
from pp_processor.calculators.performance import CalculateError
from pp_processor.database.best_score import BestScore
from pp_processor.database.score import Score, ScoreBase
from pp_processor.dependencies.database import transaction
from pp_processor.log import service_logger

from sqlalchemy.ext.asyncio import AsyncEngine

if TYPE_CHECKING:
    from pp_processor.dependencies.context import ProcessorContext
    from pp_processor.service.beatmap_service import BeatmapService

logger = service_logger("ScorePP")


class ScorePPService:
    """Recomputes stored pp straight from score rows, without looking at replays."""

    def __init__(self, engine: AsyncEngine, beatmaps: "BeatmapService", evaluator: PerformanceEvaluator):
        self.engine = engine
        self.beatmaps = beatmaps
        self.evaluator = evaluator

    @classmethod
    def from_context(cls, ctx: "ProcessorContext") -> "ScorePPService":
        return cls(ctx.official_engine, ctx.beatmaps, ctx.evaluator)

    async def _fresh_total(self, row: ScoreBase, description: str) -> float | None:
        beatmap = await self.beatmaps.get_beatmap(row.hash)
        if beatmap is None:
            logger.info(f"{description} has no beatmap")
            return None
        try:
            return (await self.evaluator.evaluate_score(beatmap, row)).total
        except CalculateError as e:
            logger.error(f"Failed to calculate {description}: {e}")
            return None

    async def recalculate(self, score_id: int) -> float | None:
        """Rewrite the pp of a score and its best score, damped by their multipliers.

        Scores without pp are left alone. A best score whose calculation fails
        keeps its row with a pp of 0.
        """
        async with transaction(self.engine) as session:
            score = await session.get(Score, score_id)
            if score is None:
                logger.info(f"Score ID {score_id} does not exist")
                return None
            if score.pp is None:
                logger.info(f"Score ID {score_id} has no pp, skipping")
                return None

            total = await self._fresh_total(score, f"score with ID {score_id}")
            if total is not None:
                score.pp = dampen_pp(total, score.pp_multiplier)

            best = await session.get(BestScore, score_id)
            if best is not None:
                best_total = await self._fresh_total(best, f"best score with ID {score_id}")
                best.pp = dampen_pp(best_total, best.pp_multiplier) if best_total is not None else 0

        logger.info(f"Score ID {score_id} processed with a pp value of {score.pp}")
        return score.pp

    async def populate_multiplier(self, score_id: int) -> float | None:
        """Store ``pp / fresh total`` as the multiplier of a score and its best score."""
        async with transaction(self.engine) as session:
            score = await session.get(Score, score_id)
            if score is None:
                logger.info(f"Score ID {score_id} does not exist")
                return None
            if score.pp is None:
                logger.info(f"Score ID {score_id} has no pp, skipping")
                return None

            total = await self._fresh_total(score, f"score with ID {score_id}")
            if total is not None:
                score.pp_multiplier = score.pp / total if total != 0 else 1

            best = await session.get(BestScore, score_id)
            if best is not None:
                best_total = await self._fresh_total(best, f"best score with ID {score_id}")
                if best_total is not None:
                    best.pp_multiplier = best.pp / best_total if best_total != 0 else 1

        logger.info(f"Processed score {score_id}")
        return score.pp_multiplier
