from collections.abc import Awaitable
import importlib
import math
from typing import TYPE_CHECKING, Any, TypeVar

from pp_processor.calculators.performance import (
    CalculateError,
    DifficultyError,
    MissingReplayDataError,
    PerformanceCalculator,
)
from pp_processor.calculators.pool import CalculationPool
from pp_processor.database.difficulty_attributes import DifficultyAttributesCache
from pp_processor.dependencies.database import transaction, with_db
from pp_processor.log import log
from pp_processor.models.performance import CalculationParameters, PerformanceResult
from pp_processor.models.replay import ReplayData

from sqlalchemy.ext.asyncio import AsyncEngine

if TYPE_CHECKING:
    from pp_processor.database.beatmap import Beatmap
    from pp_processor.database.score import ScoreBase
    from pp_processor.service.beatmap_service import BeatmapService

logger = log("Calculator")

T = TypeVar("T")


async def load_calculator(name: str, config: dict[str, Any], pool: CalculationPool) -> PerformanceCalculator:
    try:
        module = importlib.import_module(f"pp_processor.calculators.performance.{name}")
        calculator = module.PerformanceCalculator(pool=pool, **config)
    except (ImportError, AttributeError) as e:
        raise ImportError(f"Failed to import performance calculator for {name}") from e
    await calculator.init()
    return calculator


def calculate_pp_weight(index: int) -> float:
    return math.pow(0.95, index)


def dampen_pp(pp: float, multiplier: float | None) -> float:
    """Scale a freshly computed value by the stored multiplier, never amplifying it."""
    return pp * min(multiplier if multiplier is not None else 1.0, 1.0)


def obtain_override_parameters(score: "ScoreBase", data: ReplayData) -> CalculationParameters | None:
    """Parameters stored on the score row, used instead of the replay's own for v3+ replays.

    Older replay formats lack speed multiplier and forced statistics, which only
    the stored mod descriptor carries.
    """
    if not data.is_replay_v3():
        return None
    return CalculationParameters.from_score(score)


class PerformanceEvaluator:
    def __init__(self, calculator: PerformanceCalculator, beatmaps: "BeatmapService", engine: AsyncEngine):
        self.calculator = calculator
        self.beatmaps = beatmaps
        self.engine = engine

    async def _run(self, calculation: Awaitable[T], beatmap: "Beatmap", mods_key: str) -> T:
        try:
            return await calculation
        except CalculateError:
            raise
        except Exception as e:
            raise CalculateError(f"Failed to calculate beatmap {beatmap.id} [{mods_key}]: {e}") from e

    async def evaluate(self, beatmap: "Beatmap", params: CalculationParameters) -> PerformanceResult:
        beatmap_raw = await self.beatmaps.get_beatmap_file(beatmap.id)
        if beatmap_raw is None:
            raise DifficultyError(f"Beatmap file of {beatmap.id} is unavailable")

        params = params.model_copy(deep=True)
        params.apply_beatmap(beatmap.object_count)
        mods_key = params.mods_key

        async with with_db(self.engine) as session:
            difficulty = await DifficultyAttributesCache.get_attributes(session, beatmap.id, mods_key)
        if difficulty is None:
            difficulty = await self._run(self.calculator.calculate_difficulty(beatmap_raw, params), beatmap, mods_key)
            async with transaction(self.engine) as session:
                await DifficultyAttributesCache.store(session, beatmap.id, mods_key, difficulty)

        performance = await self._run(
            self.calculator.calculate_performance(beatmap_raw, difficulty, params), beatmap, mods_key
        )
        performance = performance.penalized(params)
        logger.debug(f"Calculated beatmap {beatmap.id} [{mods_key}]: {performance.pp:.2f}pp")
        return PerformanceResult(params=params, difficulty=difficulty, performance=performance)

    async def evaluate_score(self, beatmap: "Beatmap", score: "ScoreBase") -> PerformanceResult:
        return await self.evaluate(beatmap, CalculationParameters.from_score(score))

    async def evaluate_replay(
        self,
        beatmap: "Beatmap",
        data: ReplayData | None,
        override: CalculationParameters | None = None,
    ) -> PerformanceResult:
        if data is None:
            raise MissingReplayDataError(f"No replay data to calculate beatmap {beatmap.id}")
        params = override.with_penalties(data) if override is not None else CalculationParameters.from_replay(data)
        return await self.evaluate(beatmap, params)
