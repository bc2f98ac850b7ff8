from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

from pp_processor.calculator import PerformanceEvaluator, obtain_override_parameters
from pp_processor.calculators.performance import CalculateError
from pp_processor.database.best_score import BestScore
from pp_processor.database.score import Score, ScoreBase
from pp_processor.dependencies.database import transaction, with_db
from pp_processor.log import service_logger
from pp_processor.models.mods import construct_mod_descriptor
from pp_processor.models.performance import PerformanceResult
from pp_processor.models.replay import ReplayData
from pp_processor.replay.analyzer import ReplayAnalyzer, decode_replay
from pp_processor.replay.validator import is_valid
from pp_processor.storage.replay import ReplayBlobStore

from sqlalchemy.ext.asyncio import AsyncEngine

if TYPE_CHECKING:
    from pp_processor.database.beatmap import Beatmap
    from pp_processor.dependencies.context import ProcessorContext
    from pp_processor.service.beatmap_service import BeatmapService

logger = service_logger("ScoreReconciler")

# Columns rewritten when a best score is replaced in place. The player and
# beatmap of a best score never change.
BEST_SCORE_UPDATE_FIELDS = (
    "filename",
    "mods",
    "score",
    "combo",
    "mark",
    "geki",
    "perfect",
    "katu",
    "good",
    "bad",
    "miss",
    "date",
    "slider_tick_hit",
    "slider_end_hit",
    "accuracy",
    "pp",
)


class ReconcileOutcome(str, Enum):
    MISSING = "missing"
    UNRANKED = "unranked"
    NO_VALID_REPLAY = "no_valid_replay"
    # Another best score of the same player and beatmap is worth more.
    SUPERSEDED = "superseded"
    PROMOTED = "promoted"


class ReconcileResult(NamedTuple):
    outcome: ReconcileOutcome
    score_pp: float | None = None
    best_pp: float | None = None


class _Candidate(NamedTuple):
    pp: float
    data: ReplayData
    raw: bytes


class ScoreReconciler:
    """Recomputes one score and its best score from their replays.

    The steps run in a fixed order for every score ID: the score row is
    fetched, its beatmap checked, the online replay evaluated, the best replay
    evaluated, and the higher of the two is written back as the best score.
    Every database step is a transaction of its own and replay files are
    only touched after the transaction that references them has committed.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        beatmaps: "BeatmapService",
        replays: ReplayBlobStore,
        analyzer: ReplayAnalyzer,
        evaluator: PerformanceEvaluator,
    ):
        self.engine = engine
        self.beatmaps = beatmaps
        self.replays = replays
        self.analyzer = analyzer
        self.evaluator = evaluator

    @classmethod
    def from_context(cls, ctx: "ProcessorContext") -> "ScoreReconciler":
        return cls(ctx.official_engine, ctx.beatmaps, ctx.replays, ctx.require_analyzer(), ctx.evaluator)

    async def reconcile(self, score_id: int) -> ReconcileResult:
        async with with_db(self.engine) as session:
            score = await session.get(Score, score_id)

        if score is None or score.score == 0:
            logger.info(f"Score ID {score_id} does not exist")
            await self.invalidate(score_id)
            return ReconcileResult(ReconcileOutcome.MISSING)

        beatmap = await self.beatmaps.get_beatmap(score.hash)
        if beatmap is None or not beatmap.has_pp:
            logger.info(f"Score ID {score_id} has an unranked beatmap")
            await self.invalidate(score_id)
            return ReconcileResult(ReconcileOutcome.UNRANKED)

        score, candidate = await self._evaluate_score(score_id, beatmap)
        if score is None:
            logger.info(f"Score ID {score_id} was removed while being processed")
            await self.invalidate(score_id)
            return ReconcileResult(ReconcileOutcome.MISSING)
        score_pp = candidate.pp if candidate is not None else None

        best_pp, candidate = await self._evaluate_best_score(score_id, beatmap, candidate)

        if candidate is None:
            logger.info(f"Score ID {score_id} has no valid replay")
            return ReconcileResult(ReconcileOutcome.NO_VALID_REPLAY, score_pp, best_pp)

        best = self._build_best_score(score, beatmap, candidate)
        if not await self._upsert_best_score(best):
            return ReconcileResult(ReconcileOutcome.SUPERSEDED, score_pp, best_pp)

        # The row is committed, a failed write heals on the next pass as the
        # best replay then no longer validates.
        await self.replays.write_best(score_id, candidate.raw)
        logger.info(f"Score ID {score_id} processed with a pp value of {candidate.pp:.2f}")
        return ReconcileResult(ReconcileOutcome.PROMOTED, score_pp, candidate.pp)

    async def invalidate(self, score_id: int) -> None:
        """Null the score's pp and drop its best score together with the best replay."""
        async with transaction(self.engine) as session:
            await Score.set_pp(session, score_id, None)
            best = await session.get(BestScore, score_id)
            if best is not None:
                await session.delete(best)
        await self.replays.delete_best(score_id)

    async def _calculate(
        self, beatmap: "Beatmap", row: ScoreBase | None, data: ReplayData, description: str
    ) -> PerformanceResult | None:
        override = obtain_override_parameters(row, data) if row is not None else None
        try:
            return await self.evaluator.evaluate_replay(beatmap, data, override)
        except CalculateError as e:
            logger.error(f"Failed to calculate {description}: {e}")
            return None

    async def _evaluate_score(self, score_id: int, beatmap: "Beatmap") -> tuple[Score | None, _Candidate | None]:
        raw = await self.replays.read_online(score_id)
        data = await decode_replay(self.analyzer, raw, f"Online replay of score ID {score_id}")
        candidate = None

        async with transaction(self.engine) as session:
            score = await session.get(Score, score_id)
            if score is None:
                return None, None
            score.filename = beatmap.title

            if raw is not None and data is not None and is_valid(score, data):
                result = await self._calculate(beatmap, score, data, f"score with ID {score_id}")
                if result is not None:
                    candidate = _Candidate(result.total, data, raw)
            elif data is not None:
                logger.info(f"Online replay of score ID {score_id} does not match its score")

            score.pp = candidate.pp if candidate is not None else None

        return score, candidate

    async def _evaluate_best_score(
        self, score_id: int, beatmap: "Beatmap", candidate: _Candidate | None
    ) -> tuple[float | None, _Candidate | None]:
        raw = await self.replays.read_best(score_id)
        data = await decode_replay(self.analyzer, raw, f"Best replay of score ID {score_id}")
        best_pp = None
        drop_replay = False

        async with transaction(self.engine) as session:
            best = await session.get(BestScore, score_id)
            if best is not None:
                best.filename = beatmap.title

            if raw is not None and data is not None:
                if best is not None and not is_valid(best, data):
                    logger.info(f"Best replay of score ID {score_id} does not match its best score, deleting")
                    await session.delete(best)
                    drop_replay = True
                else:
                    result = await self._calculate(beatmap, best, data, f"best score with ID {score_id}")
                    if result is None:
                        if best is not None:
                            await session.delete(best)
                        drop_replay = True
                    else:
                        best_pp = result.total
                        if best is not None:
                            best.pp = best_pp
                        # Ties keep the online replay.
                        if candidate is None or best_pp > candidate.pp:
                            candidate = _Candidate(best_pp, data, raw)

        if drop_replay:
            await self.replays.delete_best(score_id)
        return best_pp, candidate

    @staticmethod
    def _build_best_score(score: Score, beatmap: "Beatmap", candidate: _Candidate) -> BestScore:
        data = candidate.data
        accuracy = data.accuracy

        mods = score.parsed_mods
        if data.is_replay_v3():
            mods.mods = data.mods.droid_string
        if data.is_replay_v4():
            mods.speed_multiplier = data.speed_multiplier
        if data.is_replay_v5():
            mods.force_ar = data.force_ar
            mods.force_od = data.force_od
            mods.force_cs = data.force_cs
            mods.force_hp = data.force_hp

        best = BestScore(
            id=score.id,  # pyright: ignore[reportArgumentType]
            uid=score.uid,
            hash=score.hash,
            filename=beatmap.title,
            mods=construct_mod_descriptor(mods),
            score=score.score,
            combo=score.combo,
            mark=score.mark,
            geki=score.geki,
            katu=score.katu,
            perfect=accuracy.n300,
            good=accuracy.n100,
            bad=accuracy.n50,
            miss=accuracy.nmiss,
            date=score.date,
            slider_tick_hit=score.slider_tick_hit,
            slider_end_hit=score.slider_end_hit,
            accuracy=accuracy.value(),
            pp=candidate.pp,
            pp_multiplier=score.pp_multiplier if score.pp_multiplier is not None else 1,
        )

        if data.is_replay_v3():
            best.score = data.score
            best.combo = data.max_combo
            if data.rank is not None:
                best.mark = data.rank.value
            best.geki = data.hit300k
            best.katu = data.hit100k
            if data.time is not None:
                best.date = data.time

        return best

    async def _upsert_best_score(self, best: BestScore) -> bool:
        displaced = None

        async with transaction(self.engine) as session:
            other = await BestScore.get_by_player_beatmap(session, best.uid, best.hash)
            if other is not None and other.id != best.id:
                if other.pp >= best.pp:
                    logger.info(
                        f"Score ID {best.id} is worth less than best score {other.id} "
                        f"({best.pp:.2f} <= {other.pp:.2f}), keeping the latter"
                    )
                    return False
                displaced = other.id
                await session.delete(other)
                await session.flush()

            existing = await session.get(BestScore, best.id)
            if existing is None:
                session.add(best)
            else:
                for field in BEST_SCORE_UPDATE_FIELDS:
                    setattr(existing, field, getattr(best, field))

        if displaced is not None:
            await self.replays.delete_best(displaced)
        return True
