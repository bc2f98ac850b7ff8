from __future__ import annotations

from dataclasses import dataclass

from pp_processor.calculator import PerformanceEvaluator, load_calculator
from pp_processor.calculators.performance import PerformanceCalculator
from pp_processor.calculators.pool import CalculationPool
from pp_processor.config import ReplaySourceType, Settings
from pp_processor.database import PROCESSOR_TABLES
from pp_processor.dependencies.database import check_connection, create_engine, create_redis, create_tables
from pp_processor.fetcher import Fetcher
from pp_processor.log import system_logger
from pp_processor.replay.analyzer import ReplayAnalyzer, ReplayAnalyzerError, load_replay_analyzer
from pp_processor.service.beatmap_service import BeatmapService
from pp_processor.storage.replay import RemoteReplaySource, ReplayBlobStore

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

logger = system_logger("Context")


@dataclass
class ProcessorContext:
    """Every handle a processing job needs, owned by the job's entry point."""

    settings: Settings
    official_engine: AsyncEngine
    processor_engine: AsyncEngine
    redis: Redis | None
    fetcher: Fetcher
    beatmaps: BeatmapService
    replays: ReplayBlobStore
    pool: CalculationPool
    calculator: PerformanceCalculator
    evaluator: PerformanceEvaluator
    analyzer: ReplayAnalyzer | None = None

    def require_analyzer(self) -> ReplayAnalyzer:
        if self.analyzer is None:
            raise ReplayAnalyzerError("No replay analyzer is loaded")
        return self.analyzer

    async def close(self) -> None:
        await self.beatmaps.close()
        await self.replays.close()
        if self.redis is not None:
            await self.redis.aclose()
        await self.official_engine.dispose()
        await self.processor_engine.dispose()
        self.pool.shutdown()


async def connect(
    settings: Settings,
    workers: int | None = None,
    require_analyzer: bool = True,
    use_redis: bool = True,
) -> ProcessorContext:
    """Connect every store and load the plugins.

    Raises on anything a job cannot run without. The redis beatmap file cache is
    optional and skipped with a warning when unreachable.
    """
    official_engine = create_engine(settings.official_database_url)
    processor_engine = create_engine(settings.processor_database_url)
    await check_connection(official_engine)
    await check_connection(processor_engine)
    await create_tables(processor_engine, PROCESSOR_TABLES)
    logger.info("Connected to official and processor databases")

    redis = None
    if use_redis:
        redis = create_redis(settings.redis_url)
        try:
            await redis.ping()  # pyright: ignore[reportGeneralTypeIssues]
        except Exception as e:
            logger.warning(f"Redis is unavailable, beatmap files will not be cached: {e}")
            await redis.aclose()
            redis = None

    fetcher = Fetcher(settings.beatmap_api_url, settings.internal_api_key, settings.remote_replay_url)
    beatmaps = BeatmapService(
        processor_engine,
        fetcher,
        redis,
        recheck_minutes=settings.beatmap_recheck_minutes,
        cache_expire_hours=settings.beatmap_cache_expire_hours,
    )

    source = RemoteReplaySource(fetcher) if settings.replay_source == ReplaySourceType.REMOTE else None
    replays = ReplayBlobStore.from_settings(settings, source)

    analyzer = None
    if require_analyzer:
        analyzer = await load_replay_analyzer(settings.replay_analyzer)

    pool = CalculationPool(workers if workers is not None else settings.calculation_workers or None)
    calculator = await load_calculator(settings.calculator, settings.calculator_config, pool)
    evaluator = PerformanceEvaluator(calculator, beatmaps, processor_engine)
    logger.info(f"Loaded calculator {settings.calculator} with {pool.max_workers} worker(s)")

    return ProcessorContext(
        settings=settings,
        official_engine=official_engine,
        processor_engine=processor_engine,
        redis=redis,
        fetcher=fetcher,
        beatmaps=beatmaps,
        replays=replays,
        pool=pool,
        calculator=calculator,
        evaluator=evaluator,
        analyzer=analyzer,
    )
